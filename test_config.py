import json
import os
import random
import tempfile
import unittest
from unittest.mock import MagicMock

import httpx

from cluster_core.config import Configuration, NodeSpec
from cluster_core.errors import ConfigError


def settings(**overrides):
    payload = {
        "nodes": [
            {"host": "a", "port": 8108, "protocol": "http"},
            {"host": "b", "port": "8108", "protocol": "http", "path": "/ts"},
            {"host": "c", "port": 443, "protocol": "https"},
        ],
        "api_key": "xyz",
        "randomize_nodes": False,
    }
    payload.update(overrides)
    return payload


class TestConfiguration(unittest.TestCase):
    def test_defaults(self):
        config = Configuration(settings())
        self.assertEqual(config.num_retries, 3)
        self.assertEqual(config.retry_interval_seconds, 1.0)
        self.assertEqual(config.healthcheck_interval_seconds, 60)
        self.assertFalse(config.verbose)
        self.assertIsNone(config.nearest_node)
        self.assertEqual(config.api_key, "xyz")

    def test_nodes_keep_order_when_not_randomized(self):
        config = Configuration(settings())
        self.assertEqual([n.host for n in config.nodes], ["a", "b", "c"])
        self.assertEqual(config.nodes[1].url(), "http://b:8108/ts")
        self.assertEqual(config.nodes[1].port, 8108)

    def test_randomize_applies_fisher_yates_shuffle(self):
        rng = MagicMock(spec=random.Random)
        rng.randint.return_value = 0

        config = Configuration(settings(randomize_nodes=True), rng=rng)

        # i=2 swaps with 0 -> c,b,a ; i=1 swaps with 0 -> b,c,a
        self.assertEqual([n.host for n in config.nodes], ["b", "c", "a"])
        self.assertEqual([c.args for c in rng.randint.call_args_list], [(0, 2), (0, 1)])

    def test_randomize_is_the_default(self):
        payload = settings()
        del payload["randomize_nodes"]
        config = Configuration(payload, rng=random.Random(7))
        self.assertTrue(config.randomize_nodes)
        self.assertEqual(sorted(n.host for n in config.nodes), ["a", "b", "c"])

    def test_nearest_node_is_separate_from_pool(self):
        config = Configuration(settings(nearest_node={"host": "near", "port": 8108, "protocol": "http"}))
        self.assertEqual(config.nearest_node.url(), "http://near:8108")
        self.assertNotIn(config.nearest_node, config.nodes)

    def test_policy_overrides(self):
        config = Configuration(
            settings(num_retries=5, retry_interval_seconds=0.25, healthcheck_interval_seconds=15, verbose=True)
        )
        self.assertEqual(config.num_retries, 5)
        self.assertEqual(config.retry_interval_seconds, 0.25)
        self.assertEqual(config.healthcheck_interval_seconds, 15)
        self.assertTrue(config.verbose)

    def test_missing_nodes(self):
        with self.assertRaises(ConfigError) as cm:
            Configuration(settings(nodes=[]))
        self.assertIn("`nodes`", str(cm.exception))

    def test_missing_api_key(self):
        payload = settings()
        del payload["api_key"]
        with self.assertRaises(ConfigError) as cm:
            Configuration(payload)
        self.assertIn("`api_key`", str(cm.exception))

    def test_node_missing_required_field(self):
        with self.assertRaises(ConfigError):
            Configuration(settings(nodes=[{"host": "a", "port": 8108}]))

    def test_nearest_node_missing_required_field(self):
        with self.assertRaises(ConfigError) as cm:
            Configuration(settings(nearest_node={"host": "near", "port": 8108}))
        self.assertIn("`nearest_node`", str(cm.exception))

    def test_invalid_port(self):
        with self.assertRaises(ConfigError):
            Configuration(settings(nodes=[{"host": "a", "port": "eighty", "protocol": "http"}]))

    def test_rejects_non_httpx_client(self):
        with self.assertRaises(ConfigError):
            Configuration(settings(), client=object())

    def test_injected_client_is_used(self):
        client = httpx.Client()
        self.addCleanup(client.close)
        config = Configuration(settings(), client=client)
        self.assertIs(config.get_client(), client)
        self.assertFalse(config.owns_client)

    def test_from_file(self):
        with tempfile.NamedTemporaryFile("w", suffix=".json", delete=False) as handle:
            json.dump(settings(num_retries=1), handle)
        self.addCleanup(os.remove, handle.name)

        config = Configuration.from_file(handle.name)
        self.assertEqual(config.num_retries, 1)
        self.assertEqual(len(config.nodes), 3)

    def test_from_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            Configuration.from_file("/nonexistent/cluster.json")


class TestNodeSpec(unittest.TestCase):
    def test_from_dict_defaults_path(self):
        spec = NodeSpec.from_dict({"host": "h", "port": "9000", "protocol": "https"})
        self.assertEqual(spec, NodeSpec(host="h", port=9000, protocol="https", path=""))
        self.assertEqual(spec.to_node().url(), "https://h:9000")

    def test_from_dict_missing_key(self):
        with self.assertRaises(ConfigError) as cm:
            NodeSpec.from_dict({"host": "h", "protocol": "http"})
        self.assertIn("port", str(cm.exception))


if __name__ == '__main__':
    unittest.main()
