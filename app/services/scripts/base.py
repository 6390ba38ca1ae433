"""Call script provider interface."""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Union
from pydantic import BaseModel


ScriptSection = Union[str, Dict[str, str]]


class CallScript(BaseModel):
    """Conversation script for one kind of outbound call."""

    name: str
    description: Optional[str] = None
    sections: Dict[str, ScriptSection]
    flow: List[str] = []  # Section names in speaking order
    required_fields: List[str] = []
    defaults: Dict[str, str] = {}
    sample_data: Dict[str, str] = {}


class ScriptCatalog(BaseModel):
    """All scripts plus values shared between them."""

    scripts: List[CallScript]
    common: Dict[str, str] = {}


class ScriptProvider(ABC):
    """Abstract base class for call script providers."""

    @abstractmethod
    async def get_catalog(self) -> ScriptCatalog:
        """Get every script."""
        pass

    @abstractmethod
    async def get_script(self, name: str) -> Optional[CallScript]:
        """Get a script by name."""
        pass
