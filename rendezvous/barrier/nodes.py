# -*- coding: utf-8 -*-
"""Node lifecycle helpers: create-if-absent and delete-if-empty.

Both helpers lean on the store's atomic create/delete and turn the expected
race outcomes into return values. Every other store error propagates.
"""

import logging
from typing import Optional

from ..stores.base import CoordinationStore, CreateMode
from ..rendezvous_types import NodeExistsError, NoNodeError, NotEmptyError

logger = logging.getLogger(__name__)


def try_to_create_node(store: CoordinationStore, path: str,
                       mode: CreateMode = CreateMode.PERSISTENT,
                       data: bytes = b"") -> Optional[str]:
    """
    Create a node unless it already exists.

    Returns:
        The created path, or None if the node was already there
    """
    try:
        created = store.create(path, data, mode)
    except NodeExistsError:
        logger.debug(f"Node {path} already exists")
        return None
    logger.debug(f"Created {mode.value} node {path}")
    return created


def delete_node_if_empty(store: CoordinationStore, path: str) -> bool:
    """
    Delete a node only if it has no children.

    Returns:
        True if this call deleted the node; False if it still has children
        or is already gone
    """
    try:
        store.delete(path)
    except NotEmptyError:
        logger.debug(f"Node {path} has children, leaving it in place")
        return False
    except NoNodeError:
        logger.debug(f"Node {path} already gone")
        return False
    logger.debug(f"Deleted node {path}")
    return True
