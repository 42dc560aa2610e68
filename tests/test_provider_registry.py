import unittest

from watchtower.config import AppConfig
from watchtower.core.errors import ProviderNotFoundError
from watchtower.core.registry import SOURCES, SYNTHESIZERS, ProviderRegistry
from watchtower.core.types import SourceId
from watchtower.infra.http.client import HttpClient
from watchtower.modules.dashboard.sources import SourceCatalog
from watchtower.modules.dashboard.state import DATA_SOURCES


class ProviderRegistryTest(unittest.TestCase):
    def test_register_and_resolve(self):
        registry = ProviderRegistry()
        registry.register("sources", "fake", lambda: {"ok": True})

        self.assertTrue(registry.has("sources", "fake"))
        payload = registry.resolve("sources", "fake")
        self.assertEqual(payload["ok"], True)
        self.assertEqual(registry.list_ids("sources"), ["fake"])

    def test_unknown_provider_raises(self):
        with self.assertRaises(ProviderNotFoundError):
            ProviderRegistry().resolve("sources", "missing")

    def test_catalog_registers_every_data_source(self):
        registry = ProviderRegistry()
        catalog = SourceCatalog(AppConfig(), HttpClient(5, "test"), registry)

        clients = catalog.clients()
        self.assertEqual(tuple(clients), DATA_SOURCES)
        for source_id, client in clients.items():
            self.assertEqual(client.source_id, source_id)
        self.assertNotIn(SourceId.BRIEF, clients)
        self.assertEqual(registry.list_ids(SYNTHESIZERS), ["openai_compatible"])
        self.assertEqual(catalog.synthesizer().provider_id, "openai_compatible")
        self.assertEqual(len(registry.list_ids(SOURCES)), 7)


if __name__ == "__main__":
    unittest.main()
