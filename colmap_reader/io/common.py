import os
import logging
import contextlib
from typing import BinaryIO, Dict, Iterator, TypeVar, Union

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", BinaryIO]

EntityT = TypeVar("EntityT")


@contextlib.contextmanager
def open_source(source: Source) -> Iterator[BinaryIO]:
    """Yield a binary stream for `source`.

    Paths are opened here and closed on exit; streams handed in by the
    caller are yielded as-is and left open.
    """
    if isinstance(source, (str, os.PathLike)):
        with open(source, "rb") as fid:
            yield fid
    else:
        yield source


def add_entity(entities: Dict[int, EntityT], entity_id: int, entity: EntityT, kind: str) -> None:
    """Insert an entity, letting a later record with the same id replace the earlier one."""
    if entity_id in entities:
        logger.warning("Duplicate %s ID %d; the later record replaces the earlier one.", kind, entity_id)
    entities[entity_id] = entity
