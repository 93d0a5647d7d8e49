def test_add_find_and_rename(file_index):
    uid = file_index.add(1, "/user_upload/", "logo.png")

    row = file_index.find(1, "/user_upload/", "logo.png")
    assert row["uid"] == uid

    file_index.rename(uid, "brand.png")
    assert file_index.find(1, "/user_upload/", "logo.png") is None
    assert file_index.get(uid)["name"] == "brand.png"


def test_update_contents_info(file_index):
    uid = file_index.add(1, "/", "a.txt")
    file_index.update_contents_info(uid, 7, "abc")

    row = file_index.get(uid)
    assert (row["size"], row["sha1"]) == (7, "abc")
    assert file_index.get(uid + 1) is None
