import ihexmap


def test_exports():
    image = ihexmap.HexImage.from_bytes(bytes([0x00, 0x01, 0x02, 0x03]), 0)
    row = image.groups[0].rows[0]
    assert isinstance(row, ihexmap.Row)
    assert row.kind == ihexmap.RowKind.DATA
    assert str(row) == ':0400000000010203F6'
    assert ihexmap.checksum(bytes.fromhex(str(row)[1:])) == 0
    assert image.to_word_list() == [ihexmap.AddressedWord(0, 0x00010203)]
    assert issubclass(ihexmap.ChecksumError, ihexmap.DecodeError)
    assert issubclass(ihexmap.RowSizeError, ValueError)
