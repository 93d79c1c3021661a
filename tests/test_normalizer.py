import io

import pytest
from PIL import Image

from conftest import make_image_bytes
from core_pfp.models import NormalizationProfile, UploadedImage
from core_pfp.services.normalizer import normalize_image


def _upload(data, content_type="image/png", filename="in.png"):
    return UploadedImage(data=data, content_type=content_type, size=len(data), filename=filename)


@pytest.mark.asyncio
async def test_lossy_profile_is_progressive_square_jpeg():
    result = await normalize_image(_upload(make_image_bytes("PNG", (200, 100))), NormalizationProfile.LOSSY)

    assert result.fallback is False
    assert result.content_type == "image/jpeg"
    assert result.filename == "in.jpg"
    with Image.open(io.BytesIO(result.data)) as img:
        assert img.format == "JPEG"
        assert img.size == (1024, 1024)
        assert img.info.get("progressive") or img.info.get("progression")


@pytest.mark.asyncio
async def test_alpha_profile_keeps_transparency():
    data = make_image_bytes("PNG", (100, 100), mode="RGBA", color=(0, 0, 0, 0))

    result = await normalize_image(_upload(data), NormalizationProfile.ALPHA)

    with Image.open(io.BytesIO(result.data)) as img:
        assert img.format == "PNG"
        assert img.mode == "RGBA"
        assert img.getpixel((512, 512))[3] == 0


@pytest.mark.asyncio
async def test_cover_fit_crops_centered():
    # red | green | blue strips; a centered square crop keeps only green
    img = Image.new("RGB", (300, 100), (255, 0, 0))
    img.paste((0, 255, 0), (100, 0, 200, 100))
    img.paste((0, 0, 255), (200, 0, 300, 100))
    buf = io.BytesIO()
    img.save(buf, format="PNG")

    result = await normalize_image(_upload(buf.getvalue()), NormalizationProfile.ALPHA)

    with Image.open(io.BytesIO(result.data)) as out:
        for x in (200, 512, 800):
            r, g, b, _ = out.getpixel((x, 512))
            assert g > 200 and r < 50 and b < 50


@pytest.mark.asyncio
async def test_webp_input_is_accepted():
    data = make_image_bytes("WEBP", (64, 48))

    result = await normalize_image(_upload(data, "image/webp", "in.webp"), NormalizationProfile.ALPHA)

    assert result.fallback is False
    assert result.filename == "in.png"


@pytest.mark.asyncio
async def test_undecodable_bytes_fall_back_to_original():
    data = b"GIF89a but not really"

    result = await normalize_image(_upload(data, "image/jpeg", None), NormalizationProfile.LOSSY)

    assert result.fallback is True
    assert result.data == data
    assert result.content_type == "image/jpeg"
    assert result.filename == "image.jpg"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "content_type, filename",
    [("image/jpeg", "image.jpg"), ("image/png", "image.png"), ("image/webp", "image.webp")],
)
async def test_fallback_filename_follows_upload_type(content_type, filename):
    result = await normalize_image(_upload(b"not decodable", content_type, None), NormalizationProfile.ALPHA)

    assert result.fallback is True
    assert result.content_type == content_type
    assert result.filename == filename
