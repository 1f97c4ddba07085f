import logging
import re

from newspage.context import SiteContext
from newspage.media import (
    delete_orphaned_uploads,
    extract_uploaded_images,
    save_upload,
    upload_name,
)


def test_extract_uploaded_images():
    text = (
        "![one](/uploads/a.png)\n"
        "[doc](/uploads/b.pdf \"Report\")\n"
        "![again](/uploads/a.png)\n"
        "![remote](https://example.com/uploads/c.png)\n"
        "plain /uploads/d.png mention\n"
    )
    assert extract_uploaded_images(text) == ["/uploads/a.png", "/uploads/b.pdf"]
    assert extract_uploaded_images("no images here") == []


def test_upload_name_keeps_lowercased_extension():
    assert re.fullmatch(r"[0-9a-f]{32}\.png", upload_name("Photo.PNG"))
    assert re.fullmatch(r"[0-9a-f]{32}\.gz", upload_name("archive.tar.gz"))
    assert re.fullmatch(r"[0-9a-f]{32}", upload_name("README"))
    assert upload_name("a.png") != upload_name("a.png")


def test_save_upload(tmp_path):
    ctx = SiteContext.from_root(tmp_path)
    url = save_upload(ctx, "cat.JPG", b"meow")
    assert url.startswith("/uploads/") and url.endswith(".jpg")
    assert (tmp_path / url.lstrip("/")).read_bytes() == b"meow"


def test_delete_orphaned_uploads(tmp_path, caplog):
    ctx = SiteContext.from_root(tmp_path)
    ctx.uploads_dir.mkdir()
    (ctx.uploads_dir / "a.png").write_bytes(b"a")
    secret = tmp_path / "secret.txt"
    secret.write_text("keep")

    with caplog.at_level(logging.WARNING, logger="newspage.media"):
        count = delete_orphaned_uploads(
            ctx, ["/uploads/a.png", "/uploads/missing.png", "/uploads/../secret.txt"]
        )
    assert count == 3
    assert not (ctx.uploads_dir / "a.png").exists()
    assert secret.exists()
    assert "outside the uploads directory" in caplog.text


def test_upload_name_ignores_unsafe_extensions():
    for original in ("x./a", "evil.png/../x", "name.p ng", "trailing."):
        name = upload_name(original)
        assert re.fullmatch(r"[0-9a-f]{32}", name), original
    assert re.fullmatch(r"[0-9a-f]{32}\.webp", upload_name("../dir/pic.WebP"))
