#!/usr/bin/env python3
"""
context.py

Tracks where module resolution currently is: which file is being
transformed, the directory relative requires are looked up in, and the
library that file belongs to.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .project import Library


@dataclass(frozen=True)
class Frame:
    file: Optional[Path]
    directory: Path
    library: Optional[Library]


class ContextStack:
    """
    LIFO stack of frames. An empty stack means the build's root file is the
    one being resolved; `current()` then returns the root frame.
    """

    def __init__(self, root: Frame):
        self.root = root
        self._frames: List[Frame] = []

    def __len__(self):
        return len(self._frames)

    def is_root(self) -> bool:
        return not self._frames

    def current(self) -> Frame:
        return self._frames[-1] if self._frames else self.root

    def contains(self, path: Path) -> bool:
        return any(frame.file == path for frame in self._frames)

    @contextmanager
    def enter(self, file: Path, library: Optional[Library]):
        frame = Frame(file, file.parent, library)
        self._frames.append(frame)
        try:
            yield frame
        finally:
            self._frames.pop()
