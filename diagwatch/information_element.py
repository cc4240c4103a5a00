"""Structured, fully parsed telecom messages ("information elements")."""

from __future__ import annotations

from dataclasses import dataclass

from .gsmtap import GsmtapKind, GsmtapMessage, GsmtapType, LteNasSubtype

__all__ = [
    "InformationElementError",
    "UnsupportedGsmtapTypeError",
    "NasInformationElement",
    "InformationElement",
    "information_element_from_gsmtap",
]


class InformationElementError(ValueError):
    """Base class for errors building an information element."""


class UnsupportedGsmtapTypeError(InformationElementError):
    """The GSMTAP message type has no information element representation."""

    def __init__(self, gsmtap_type: GsmtapType) -> None:
        super().__init__(f"Unsupported LTE RRC subtype {gsmtap_type!r}")
        self.gsmtap_type = gsmtap_type


@dataclass(frozen=True)
class NasInformationElement:
    """A plain LTE NAS message, kept as raw bytes."""

    payload: bytes


InformationElement = NasInformationElement


def information_element_from_gsmtap(gsmtap_msg: GsmtapMessage) -> InformationElement:
    """Build the information element carried by ``gsmtap_msg``."""
    gsmtap_type = gsmtap_msg.header.gsmtap_type
    if gsmtap_type.kind is GsmtapKind.LTE_NAS and gsmtap_type.subtype is LteNasSubtype.PLAIN:
        return NasInformationElement(bytes(gsmtap_msg.payload))
    raise UnsupportedGsmtapTypeError(gsmtap_type)