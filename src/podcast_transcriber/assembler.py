"""Assembly of chunk transcripts into one transcript document.

Multi-part transcripts are first joined into a marked document with a
``## Part N`` line before each chunk, then run through repair rules in
order:

* ``DegenerateRunRule`` drops the first part that contains the same token
  five or more times in a row, together with every later part. Providers
  occasionally loop on a single word near the end of an upload; an
  incomplete transcript is preferred over a garbled one.
* ``PartMarkerRule`` removes the part delimiter lines, which only exist to
  let the previous rule find part boundaries.

Assembly is a pure function of its inputs: the processing timestamp comes
in through ``TranscriptMetadata``.
"""

from __future__ import annotations

import logging
import re
import string
from typing import List, Optional, Protocol, Sequence, Tuple

from . import config_constants
from .exceptions import AssemblyCorruption
from .models import ChunkTranscript, Transcript, TranscriptMetadata

logger = logging.getLogger(__name__)

PART_MARKER_RE = re.compile(r"^## Part (\d+)[ \t]*$", re.MULTILINE)
_TOKEN_RE = re.compile(r"\S+")


def part_marker(index: int) -> str:
    return f"## Part {index}"


def format_header(metadata: TranscriptMetadata) -> str:
    """Return the metadata header block (each line terminated by a newline)."""
    lines = [
        f"# {metadata.title}",
        f"# Publication Date: {metadata.publication_date}",
        f"# Transcribed on: {metadata.processed_at}",
        f"# Source: {metadata.source_url}",
    ]
    return "\n".join(lines) + "\n"


def build_marked_document(parts: Sequence[ChunkTranscript]) -> str:
    sections = [f"{part_marker(part.index)}\n{part.text.rstrip(chr(10))}\n" for part in parts]
    return "\n".join(sections)


def split_parts(document: str) -> List[Tuple[int, str]]:
    """Split a marked document into ``(index, text)`` pairs.

    Text before the first marker, if any, is returned with index 0.
    """
    parts: List[Tuple[int, str]] = []
    matches = list(PART_MARKER_RE.finditer(document))
    if not matches:
        return [(0, document)] if document else []
    if matches[0].start() > 0:
        parts.append((0, document[: matches[0].start()]))
    for pos, match in enumerate(matches):
        end = matches[pos + 1].start() if pos + 1 < len(matches) else len(document)
        parts.append((int(match.group(1)), document[match.end() : end]))
    return parts


def _normalize_token(token: str) -> str:
    return token.strip(string.punctuation).lower()


def find_degenerate_run(
    text: str, min_run: int = config_constants.DEGENERATE_RUN_LENGTH
) -> Optional[Tuple[str, int]]:
    """Return ``(token, run_length)`` for the first run of ``min_run``+ equal tokens."""
    previous = None
    run = 0
    for raw in _TOKEN_RE.findall(text):
        token = _normalize_token(raw)
        if not token:
            continue
        if token == previous:
            run += 1
        else:
            if previous is not None and run >= min_run:
                return previous, run
            previous = token
            run = 1
    if previous is not None and run >= min_run:
        return previous, run
    return None


class RepairRule(Protocol):
    """A named transformation applied to the marked document."""

    name: str

    def apply(self, document: str) -> str: ...


class DegenerateRunRule:
    """Truncate the document at the first part holding a degenerate token run."""

    name = "degenerate_run"

    def __init__(self, min_run: int = config_constants.DEGENERATE_RUN_LENGTH):
        self.min_run = min_run

    def check(self, part_index: int, text: str) -> None:
        """Raise AssemblyCorruption if ``text`` contains a degenerate run."""
        found = find_degenerate_run(text, self.min_run)
        if found is not None:
            token, run_length = found
            raise AssemblyCorruption(part_index=part_index, token=token, run_length=run_length)

    def apply(self, document: str) -> str:
        kept: List[str] = []
        for index, text in split_parts(document):
            try:
                self.check(index, text)
            except AssemblyCorruption as corruption:
                logger.warning(
                    "Dropping part %d and all later parts: %s", index, corruption.message
                )
                break
            kept.append(text if index == 0 else f"{part_marker(index)}{text}")
        return "".join(kept)


class PartMarkerRule:
    """Remove ``## Part N`` delimiter lines."""

    name = "part_markers"

    def apply(self, document: str) -> str:
        lines = document.splitlines(keepends=True)
        return "".join(line for line in lines if not PART_MARKER_RE.match(line.rstrip("\r\n")))


DEFAULT_RULES: Tuple[RepairRule, ...] = (DegenerateRunRule(), PartMarkerRule())


def _part_indexes(document: str) -> List[int]:
    return [int(m.group(1)) for m in PART_MARKER_RE.finditer(document)]


def assemble(
    parts: Sequence[ChunkTranscript],
    metadata: TranscriptMetadata,
    rules: Sequence[RepairRule] = DEFAULT_RULES,
) -> Transcript:
    """Assemble chunk transcripts into a Transcript.

    Args:
        parts: Chunk transcripts; sorted by index before use
        metadata: Header metadata (including the processing timestamp)
        rules: Repair rules applied to multi-part documents, in order

    Returns:
        Transcript whose ``text`` is the header block, a blank line, and the body.
        A single part is used verbatim; no rules run on it.
    """
    ordered = tuple(sorted(parts, key=lambda part: part.index))
    if len(ordered) <= 1:
        body = ordered[0].text if ordered else ""
        return Transcript(parts=ordered, metadata=metadata, body=body)

    document = build_marked_document(ordered)
    surviving = [part.index for part in ordered]
    for rule in rules:
        document = rule.apply(document)
        remaining = _part_indexes(document)
        if remaining or not document.strip():
            surviving = remaining
        logger.debug("Applied assembly rule %s", rule.name)

    dropped = tuple(part.index for part in ordered if part.index not in surviving)
    body = document.strip("\n")
    if body:
        body += "\n"
    else:
        logger.warning("Every part of %r was dropped during assembly", metadata.title)
    return Transcript(parts=ordered, metadata=metadata, body=body, dropped_parts=dropped)
