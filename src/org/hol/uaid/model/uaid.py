"""UAID input and parse models."""

from typing import Dict, List, Literal, Optional

from pydantic import ConfigDict, Field

from org.hol.uaid.model.base import CamelModel

UAIDTarget = Literal["aid", "did"]


class ParsedUAID(CamelModel):
    """Decomposed UAID.

    ``uaid:<target>:<id>;<params>``. Parameter values are already
    percent-decoded.
    """

    model_config = ConfigDict(frozen=True)

    target: UAIDTarget
    id: str
    params: Dict[str, str] = Field(default_factory=dict)

    def param(self, key: str) -> str:
        """Return a trimmed parameter value, or the empty string if absent."""
        return self.params.get(key, "").strip()


class CanonicalAgentData(CamelModel):
    """Agent descriptor hashed into a ``uaid:aid`` identifier."""

    registry: str = ""
    name: str = ""
    version: str = ""
    protocol: str = ""
    native_id: str = ""
    skills: List[int] = Field(default_factory=list)


class RoutingParams(CamelModel):
    """Optional routing parameters appended to a canonical UAID."""

    uid: Optional[str] = None
    registry: Optional[str] = None
    proto: Optional[str] = None
    native_id: Optional[str] = None
    domain: Optional[str] = None
    src: Optional[str] = None
    version: Optional[str] = None
