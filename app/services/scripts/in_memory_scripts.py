"""YAML-backed call script provider."""
import yaml
from pathlib import Path
from typing import Optional
from app.services.scripts.base import CallScript, ScriptCatalog, ScriptProvider


class InMemoryScriptProvider(ScriptProvider):
    """Loads call scripts from a YAML file once and keeps them in memory."""

    def __init__(self, scripts_file: Optional[str] = None):
        if scripts_file is None:
            scripts_file = Path(__file__).parent / "data" / "scripts.yaml"
        self.scripts_file = Path(scripts_file)
        self._catalog: Optional[ScriptCatalog] = None

    async def _load_catalog(self) -> ScriptCatalog:
        if self._catalog is None:
            if not self.scripts_file.exists():
                self._catalog = ScriptCatalog(scripts=[])
            else:
                with open(self.scripts_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                self._catalog = ScriptCatalog(
                    scripts=[CallScript(**script) for script in data.get("scripts", [])],
                    common={
                        key: str(value) for key, value in (data.get("common") or {}).items()
                    },
                )
        return self._catalog

    async def get_catalog(self) -> ScriptCatalog:
        return await self._load_catalog()

    async def get_script(self, name: str) -> Optional[CallScript]:
        catalog = await self._load_catalog()
        name_lower = name.lower().strip()
        for script in catalog.scripts:
            if script.name.lower() == name_lower:
                return script
        return None
