from collections.abc import Callable

import pytest

from tests.fakes import FakeTransport, build_pdf, render_page_ranges


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF."""
    return build_pdf(1)


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF."""
    return build_pdf(2)


@pytest.fixture()
def six_page_pdf_bytes() -> bytes:
    """Reference document with six pages."""
    return build_pdf(6)


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def page_range_transport() -> FakeTransport:
    return FakeTransport(handler=render_page_ranges)


@pytest.fixture()
def pdf_factory() -> Callable[[int], bytes]:
    return build_pdf
