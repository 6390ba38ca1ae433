"""Call script repository."""
import re
from typing import Any, Dict, List, Mapping

from app.services.scripts.base import CallScript, ScriptProvider

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class ScriptNotFoundError(KeyError):
    """No script with the requested name."""


class MissingScriptFieldsError(ValueError):
    """Required customer fields were not supplied."""

    def __init__(self, script_name: str, missing: List[str]):
        super().__init__(f"{', '.join(missing)} required for {script_name}")
        self.missing = missing


def fill_placeholders(text: str, values: Mapping[str, Any]) -> str:
    """Replace {{key}} with values[key]; unknown or empty keys are left as-is."""

    def _replace(match: re.Match) -> str:
        value = values.get(match.group(1))
        return str(value) if value not in (None, "") else match.group(0)

    return PLACEHOLDER_PATTERN.sub(_replace, text)


class ScriptRepository:
    """Repository for call script operations."""

    def __init__(self, provider: ScriptProvider):
        self.provider = provider

    async def list_scripts(self) -> List[CallScript]:
        catalog = await self.provider.get_catalog()
        return catalog.scripts

    async def get_common(self) -> Dict[str, str]:
        catalog = await self.provider.get_catalog()
        return catalog.common

    async def get_script(self, name: str) -> CallScript:
        script = await self.provider.get_script(name)
        if script is None:
            raise ScriptNotFoundError(name)
        return script

    async def get_flow(self, name: str) -> List[str]:
        script = await self.get_script(name)
        return list(script.flow)

    async def build_customer_data(self, name: str, data: Mapping[str, Any]) -> Dict[str, str]:
        """Merge common values, script defaults and supplied data; check required fields."""
        script = await self.get_script(name)
        missing = [field for field in script.required_fields if not data.get(field)]
        if missing:
            raise MissingScriptFieldsError(script.name, missing)

        supplied = {key: str(value) for key, value in data.items() if value not in (None, "")}
        merged: Dict[str, str] = dict(await self.get_common())
        merged.update(script.defaults)
        merged.update(supplied)
        # Defaults may refer to other fields, e.g. orderNumber -> {{orderId}}
        for key, default in script.defaults.items():
            if key not in supplied:
                merged[key] = fill_placeholders(default, merged)
        return merged

    async def render(self, name: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Script sections with customer data substituted."""
        script = await self.get_script(name)
        values = await self.build_customer_data(name, data)
        rendered: Dict[str, Any] = {}
        for key, section in script.sections.items():
            if isinstance(section, str):
                rendered[key] = fill_placeholders(section, values)
            else:
                rendered[key] = {
                    sub_key: fill_placeholders(text, values) for sub_key, text in section.items()
                }
        return rendered
