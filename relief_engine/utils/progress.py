"""Progress helpers with a custom unicode bar."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, TypeVar

from tqdm import tqdm

T = TypeVar("T")

_BAR_CHARS = " ▏▎▍▌▋▊▉█"
_DEFAULT_BAR_FORMAT = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}]"


@dataclass
class _DisabledBar:
    total: Optional[int] = None

    def update(self, n: int = 1) -> None:
        return None

    def close(self) -> None:
        return None


def iter_progress(
    iterable: Iterable[T],
    *,
    desc: Optional[str] = None,
    total: Optional[int] = None,
    enabled: bool = True,
    mininterval: float = 0.1,
) -> Iterable[T]:
    if not enabled:
        return iterable
    return tqdm(
        iterable,
        desc=desc,
        total=total,
        ascii=_BAR_CHARS,
        bar_format=_DEFAULT_BAR_FORMAT,
        leave=False,
        dynamic_ncols=True,
        mininterval=mininterval,
    )


def progress_bar(
    total: int,
    *,
    desc: Optional[str] = None,
    enabled: bool = True,
) -> object:
    if not enabled:
        return _DisabledBar(total=total)
    return tqdm(
        total=total,
        desc=desc,
        ascii=_BAR_CHARS,
        bar_format=_DEFAULT_BAR_FORMAT,
        leave=False,
        dynamic_ncols=True,
    )


def progress_print(*args: object, enabled: bool = True, **kwargs: object) -> None:
    """Print without disrupting an active tqdm bar."""
    if enabled:
        tqdm.write(" ".join(str(arg) for arg in args))
        return
    print(*args, **kwargs)
