"""Unit tests for the call script catalog."""
import pytest

from app.services.scripts.in_memory_scripts import InMemoryScriptProvider
from app.services.scripts.repository import (
    MissingScriptFieldsError,
    ScriptNotFoundError,
    ScriptRepository,
    fill_placeholders,
)


class TestFillPlaceholders:
    def test_known_values_replaced(self):
        assert fill_placeholders("Hi {{name}}, order {{id}}", {"name": "Priya", "id": 7}) == "Hi Priya, order 7"

    def test_unknown_and_empty_values_left_as_is(self):
        assert fill_placeholders("{{a}} {{b}}", {"b": ""}) == "{{a}} {{b}}"


class TestInMemoryScriptProvider:
    """Test YAML loading."""

    @pytest.mark.asyncio
    async def test_loads_bundled_scripts(self, test_scripts_path):
        provider = InMemoryScriptProvider(scripts_file=str(test_scripts_path))

        catalog = await provider.get_catalog()

        assert {script.name for script in catalog.scripts} == {"order_confirmation", "abandoned_cart"}
        assert catalog.common["supportNumber"] == "1800-000-0000"

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, test_scripts_path):
        provider = InMemoryScriptProvider(scripts_file=str(test_scripts_path))

        script = await provider.get_script("  Abandoned_Cart ")

        assert script is not None
        assert script.name == "abandoned_cart"

    @pytest.mark.asyncio
    async def test_missing_file_gives_empty_catalog(self, tmp_path):
        provider = InMemoryScriptProvider(scripts_file=str(tmp_path / "missing.yaml"))

        assert (await provider.get_catalog()).scripts == []
        assert await provider.get_script("order_confirmation") is None

    @pytest.mark.asyncio
    async def test_custom_file(self, tmp_path):
        scripts_file = tmp_path / "scripts.yaml"
        scripts_file.write_text(
            "common:\n"
            "  supportNumber: 12345\n"
            "scripts:\n"
            "  - name: reminder\n"
            "    required_fields: [customerName]\n"
            "    flow: [greeting]\n"
            "    sections:\n"
            "      greeting: \"Hi {{customerName}}, call {{supportNumber}}\"\n"
        )
        repository = ScriptRepository(InMemoryScriptProvider(scripts_file=str(scripts_file)))

        rendered = await repository.render("reminder", {"customerName": "Asha"})

        assert rendered == {"greeting": "Hi Asha, call 12345"}


class TestScriptRepository:
    """Test rendering scripts with customer data."""

    @pytest.mark.asyncio
    async def test_render_order_confirmation(self, script_repository):
        rendered = await script_repository.render(
            "order_confirmation", {"orderId": "PF999", "customerName": "Rahul Kumar"}
        )

        assert "Am I speaking with Rahul Kumar?" in rendered["greeting"]
        assert "Your order number is PF999." in rendered["orderDetails"]
        assert "On today you ordered your product." in rendered["orderDetails"]
        assert "1800-000-0000" in rendered["thankYou"]
        assert rendered["confirmIdentity"]["no"].endswith("Rahul Kumar?")
        assert "1800-000-0000" in rendered["fallback"]["needHelp"]

    @pytest.mark.asyncio
    async def test_supplied_values_override_defaults(self, script_repository):
        data = await script_repository.build_customer_data(
            "abandoned_cart",
            {"cartId": "C1", "customerName": "Priya", "discountPercent": 15, "offerCode": ""},
        )

        assert data["discountPercent"] == "15"
        assert data["offerCode"] == "CART10"
        assert data["website"] == "www.example.com"

    @pytest.mark.asyncio
    async def test_missing_required_fields(self, script_repository):
        with pytest.raises(MissingScriptFieldsError) as exc_info:
            await script_repository.render("abandoned_cart", {"customerName": "Priya"})

        assert exc_info.value.missing == ["cartId"]
        assert "cartId required for abandoned_cart" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unknown_script(self, script_repository):
        with pytest.raises(ScriptNotFoundError):
            await script_repository.get_script("survey")

    @pytest.mark.asyncio
    async def test_flow_lists_known_sections(self, script_repository):
        for script in await script_repository.list_scripts():
            flow = await script_repository.get_flow(script.name)
            assert flow
            assert set(flow) <= set(script.sections)

    @pytest.mark.asyncio
    async def test_sample_data_renders_without_placeholders(self, script_repository):
        for script in await script_repository.list_scripts():
            rendered = await script_repository.render(script.name, script.sample_data)
            for section in rendered.values():
                texts = [section] if isinstance(section, str) else list(section.values())
                assert all("{{" not in text for text in texts)
