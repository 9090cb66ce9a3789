# -*- coding: utf-8 -*-
"""Abstract barrier interface."""

import abc
from typing import Optional

from ..config import RendezvousConfig, get_config


class Barrier(abc.ABC):
    """A named rendezvous point that a fixed number of members must reach."""

    def __init__(self, config: Optional[RendezvousConfig] = None):
        self._config = config

    @property
    def config(self) -> RendezvousConfig:
        """Configuration in effect; falls back to the global one."""
        if self._config is None:
            self._config = get_config()
        return self._config

    @config.setter
    def config(self, config: RendezvousConfig) -> None:
        config.validate()
        self._config = config

    @abc.abstractmethod
    def enter(self):
        """Block until every expected member has reached the barrier."""
        pass

    @abc.abstractmethod
    def make_inactive(self) -> None:
        """Stop reacting to store notifications."""
        pass

    @abc.abstractmethod
    def cancel(self) -> bool:
        """Abandon the barrier, releasing this member's registration."""
        pass
