import io

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from core_pfp.main import app
from core_pfp.models import TransformRequest, TransformResult
from core_pfp.services.limiter import TransformLimiter
from core_pfp.services.pipeline import TransformPipeline, get_pipeline
from core_pfp.services.resolver import ImageResolver
from core_pfp.services.transform import TransformProvider


class StubProvider(TransformProvider):
    """Records every edit request and returns a canned result or raises."""

    name = "stub"
    model = "stub-image-1"

    def __init__(self, result=None, error=None):
        self.result = result if result is not None else TransformResult(b64_json="AAAA")
        self.error = error
        self.calls: list[TransformRequest] = []

    async def edit(self, request):
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        return self.result


def make_image_bytes(fmt="JPEG", size=(64, 64), color=(200, 30, 30), mode="RGB"):
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def provider():
    return StubProvider()


@pytest.fixture
def fetched():
    """URL -> httpx.Response map served to the resolver."""
    return {}


@pytest.fixture
def resolver(fetched):
    def handler(request: httpx.Request) -> httpx.Response:
        return fetched.get(str(request.url), httpx.Response(404))

    return ImageResolver(timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.fixture
def limiter():
    return TransformLimiter(2, wait_timeout=0.05)


@pytest.fixture
def pipeline(provider, resolver, limiter):
    return TransformPipeline(provider, resolver, limiter)


@pytest_asyncio.fixture
async def client(pipeline):
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    await pipeline.resolver.close()
