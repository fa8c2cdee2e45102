from __future__ import annotations

from typing import Iterator

from .build_supervisor import BuildSession


def iter_build_output(session: BuildSession) -> Iterator[str]:
    """Yield the build log as newline-terminated text chunks.

    Stopping iteration early (e.g. the HTTP client went away) drops the
    receiver; the build itself keeps running.
    """
    try:
        for line in session.output:
            yield line + "\n"
    finally:
        session.output.close()
