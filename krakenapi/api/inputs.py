"""Request descriptors handed to :class:`krakenapi.client.KrakenClient`."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .params import ParameterSet


class EndpointCategory(Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class KrakenInput:
    """One call to one endpoint.

    The parameter set is frozen on construction; build a new input per call.
    Private inputs must already carry a ``nonce`` parameter.
    """

    category: EndpointCategory
    endpoint: str
    params: Optional[ParameterSet] = None

    def __post_init__(self) -> None:
        if self.params is not None:
            self.params.freeze()

    @property
    def is_private(self) -> bool:
        return self.category is EndpointCategory.PRIVATE

    def path(self, version: str) -> str:
        return f"/{version}/{self.category}/{self.endpoint}"

    def serialized_params(self) -> Optional[str]:
        if self.params is None:
            return None
        return self.params.serialize()


def public_input(endpoint: str, params: Optional[ParameterSet] = None) -> KrakenInput:
    return KrakenInput(EndpointCategory.PUBLIC, endpoint, params)


def private_input(endpoint: str, params: ParameterSet) -> KrakenInput:
    return KrakenInput(EndpointCategory.PRIVATE, endpoint, params)


__all__ = ["EndpointCategory", "KrakenInput", "public_input", "private_input"]
