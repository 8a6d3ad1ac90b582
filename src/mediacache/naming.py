"""Folder/file naming convention parser.

Remote media is organized by name rather than by metadata. A folder is
named ``<parent><child><sep><comment>`` (``AB12c3 - Summer``) and a file
``<parent><child>-<type><num><ver><sep><comment><ext>``
(``AB12c3-V0042b - beach.mp4``). The stable object id derived here stays
the same when a file is renamed, only its comment changes.
"""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel

logger = logging.getLogger(__name__)

#                          parentBase    parentSfx  child          sep    comment
_FOLDER_PATTERN = re.compile(r"^([A-Za-z]+\d*)([A-Za-z]*)(\d*(?:\+\d+)*)([- ]*)(.*)")
#                          parentBase    parentSfx  child          type   zeros num  ver  sep  commentExt
_FILE_PATTERN = re.compile(
    r"^([A-Za-z]+\d*)([A-Za-z]*)(\d*(?:\+\d+)*)-([A-Za-z]*)(0*)([1-9]\d*)([A-Za-z]*)([- ]*)(.*)"
)


class FolderNameParts(BaseModel):
    parent: str
    child: str
    num: int | None = None
    sep: str = ""
    comment: str = ""
    id: str


class FileNameParts(BaseModel):
    parent: str
    child: str
    type: str = ""
    zeros: str = ""
    num: int
    ver: str = ""
    sep: str = ""
    comment: str = ""
    ext: str = ""
    id: str


def _trim_child(match: re.Match[str]) -> str:
    # A leading plus is redundant when the parent ends with a letter suffix
    child = match.group(3)
    if child.startswith("+") and match.group(2):
        logger.info("Extra plus in name: %s", match.group(0))
        return child[1:]
    return child


def _child_number(child: str) -> int | None:
    tail = child[child.rfind("+") + 1:]
    return int(tail) if tail.isdigit() else None


def parse_folder(name: str) -> FolderNameParts | None:
    """Parse a folder name, or return None if it does not follow the convention."""
    match = _FOLDER_PATTERN.match(name)
    if match is None:
        return None
    parent = (match.group(1) + match.group(2)).upper()
    child = _trim_child(match)
    sep = match.group(4)
    comment = match.group(5)
    if not sep and comment:
        return None
    return FolderNameParts(
        parent=parent,
        child=child,
        num=_child_number(match.group(3)),
        sep=sep,
        comment=comment,
        id=parent + child,
    )


def parse_file(name: str) -> FileNameParts | None:
    """Parse a file name, or return None if it does not follow the convention."""
    match = _FILE_PATTERN.match(name)
    if match is None:
        return None
    tail = match.group(9)
    # The extension is optional, so split it off the comment here
    idot = tail.rfind(".")
    if idot < 0:
        idot = len(tail)
    parent = (match.group(1) + match.group(2)).upper()
    child = _trim_child(match)
    type_code = match.group(4).upper()
    num = int(match.group(6))
    ver = match.group(7).upper()
    sep = match.group(8)
    comment = tail[:idot]
    if not sep and comment:
        return None
    return FileNameParts(
        parent=parent,
        child=child,
        type=type_code,
        zeros=match.group(5),
        num=num,
        ver=ver,
        sep=sep,
        comment=comment,
        ext=tail[idot:].lower(),
        id=f"{parent}{child}-{type_code}{num}{ver}",
    )


def parse_name(name: str) -> FileNameParts | FolderNameParts | None:
    """Try the file convention first, then the folder convention."""
    return parse_file(name) or parse_folder(name)
