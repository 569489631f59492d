"""
pytest configuration and fixtures for the chunked decoder tests.

Provides reusable fixtures for:
- Chunked buffers laid out with framing gaps
- A default interpreter
- Hypothesis property-based testing configuration
"""

import os
import sys
from pathlib import Path

import pytest

# Add project root so the package imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from tezos_dissector.chunked import ChunkedBuffer, Cursor, layout_chunks
from tezos_dissector.interpreter import SchemaInterpreter

# Configure Hypothesis profiles
try:
    from hypothesis import settings, Verbosity, Phase

    # Default profile: balanced speed and coverage
    settings.register_profile(
        "default",
        max_examples=100,
        deadline=None,
    )

    # CI profile: more thorough testing
    settings.register_profile(
        "ci",
        max_examples=500,
        deadline=None,
        phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    )

    # Dev profile: fast iteration
    settings.register_profile(
        "dev",
        max_examples=10,
        deadline=None,
    )

    # Debug profile: verbose output
    settings.register_profile(
        "debug",
        max_examples=10,
        verbosity=Verbosity.verbose,
        deadline=None,
    )

    settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "default"))

except ImportError:
    pass  # Hypothesis not installed


@pytest.fixture
def abcd_chunks():
    """Four chunks of 12, 16, 24 and 8 bytes filled with a, b, c, d."""
    return layout_chunks([b'a' * 12, b'b' * 16, b'c' * 24, b'd' * 8])


@pytest.fixture
def abcd_buffer(abcd_chunks):
    data, chunks = abcd_chunks
    return ChunkedBuffer(data, chunks)


@pytest.fixture
def interpreter():
    return SchemaInterpreter()


@pytest.fixture
def make_buffer():
    """Factory: buffer and start cursor for payload chunk bodies."""
    def make(*bodies):
        data, chunks = layout_chunks(bodies)
        return ChunkedBuffer(data, chunks), Cursor(chunks[0].body.start, 0)
    return make
