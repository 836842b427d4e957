"""Load text corpora and check that they fit the single-byte character set."""

from __future__ import annotations

import logging
from pathlib import Path

ENCODING = 'cp1252'

logger = logging.getLogger(__name__)


class CorpusEncodingError(ValueError):
    def __init__(self, path: str | Path | None, position: int, char: str):
        where = f"{path}: " if path is not None else ''
        super().__init__(f"{where}character {char!r} at offset {position} has no {ENCODING} representation")
        self.path = path
        self.position = position
        self.char = char


def is_single_byte(char: str) -> bool:
    '''True if char has a one byte representation in the code page.'''
    try:
        return len(char.encode(ENCODING)) == 1
    except UnicodeEncodeError:
        return False


def to_single_byte(text: str, path: str | Path | None = None) -> str:
    '''
    Return text unchanged if every character has a single-byte form, otherwise raise CorpusEncodingError.
    '''
    try:
        text.encode(ENCODING)
    except UnicodeEncodeError as exc:
        raise CorpusEncodingError(path, exc.start, text[exc.start]) from exc
    return text


def _corpus_files(path: Path) -> list[Path]:
    if path.is_file():
        return [path]
    if not path.is_dir():
        raise FileNotFoundError(f"Corpus not found: {path}")
    return sorted(p for p in path.rglob('*') if p.is_file())


def read_named_corpus(path: str | Path) -> list[tuple[Path, str]]:
    """
    Read every file under path, recursively.

    Parameters
    ----------
    path : str | Path
        A corpus directory, or a single text file.

    Returns
    -------
    list[tuple[Path, str]]
        The path and text of each file, in sorted path order.

    Raises
    ------
    CorpusEncodingError
        If a file holds a character outside the single-byte set. The error names the file.
    """
    corpus = []
    for file_path in _corpus_files(Path(path)):
        text = file_path.read_text(encoding='utf-8')
        corpus.append((file_path, to_single_byte(text, file_path)))
    logger.info("read %d corpus files from %s", len(corpus), path)
    return corpus


def read_corpus(path: str | Path) -> list[str]:
    return [text for _, text in read_named_corpus(path)]
