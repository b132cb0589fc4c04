import gzip
import json
import unittest
from unittest.mock import AsyncMock, MagicMock

from core.errors import PersistenceError
from infrastructure.impression_gateway import ImpressionGateway
from services.impressions_webhook import ImpressionsWebhookService
from test_payload_parser import EXAMPLE, impression


class TestImpressionsWebhookService(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.gateway = MagicMock(spec=ImpressionGateway)
        self.gateway.ensure_schema = AsyncMock()
        self.gateway.insert_batch = AsyncMock(side_effect=lambda records: len(records))
        self.service = ImpressionsWebhookService(self.gateway)

    async def _post(self, body, query=()):
        if isinstance(body, str):
            body = body.encode("utf-8")
        return await self.service.handle(list(query), body)

    async def test_example_scenario(self):
        result = await self._post(json.dumps([EXAMPLE]))

        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.body, "Impressions processed successfully.")
        self.gateway.ensure_schema.assert_awaited_once()
        (records,), _ = self.gateway.insert_batch.call_args
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].to_row(), {
            "Key": "k1", "Split": "s1", "EnvironmentId": "e1", "EnvironmentName": "Env",
            "Treatment": "on", "Time": 1700000000000, "Label": "default rule",
            "SplitVersionNumber": 3, "Sdk": "java", "SdkVersion": "2.1.0",
        })

    async def test_schema_is_ensured_before_insert(self):
        calls = []
        self.gateway.ensure_schema.side_effect = lambda: calls.append("ensure_schema")
        self.gateway.insert_batch.side_effect = lambda records: calls.append("insert_batch")

        await self._post(json.dumps([EXAMPLE]))

        self.assertEqual(calls, ["ensure_schema", "insert_batch"])

    async def test_all_records_passed_in_order(self):
        batch = [impression(key=f"k{i}", label=f"rule {i}") for i in range(25)]
        result = await self._post(json.dumps(batch))

        self.assertEqual(result.status_code, 200)
        (records,), _ = self.gateway.insert_batch.call_args
        self.assertEqual([r.model_dump() for r in records], batch)

    async def test_gzip_payload_matches_plain(self):
        payload = json.dumps([EXAMPLE, impression(key="k2")]).encode("utf-8")

        await self._post(payload)
        (plain,), _ = self.gateway.insert_batch.call_args
        await self._post(gzip.compress(payload))
        (compressed,), _ = self.gateway.insert_batch.call_args

        self.assertEqual(plain, compressed)

    async def test_empty_array_is_bad_request_without_db_calls(self):
        for body in ("[]", "null"):
            with self.subTest(body=body):
                result = await self._post(body)
                self.assertEqual(result.status_code, 400)
                self.assertIsNone(result.body)
        self.gateway.ensure_schema.assert_not_called()
        self.gateway.insert_batch.assert_not_called()

    async def test_empty_batch_warning_is_logged(self):
        with self.assertLogs("impressions_webhook", level="WARNING") as logs:
            await self._post("[]")

        self.assertEqual(logs.output, ["WARNING:impressions_webhook:No impressions received."])

    async def test_malformed_json_is_server_error_without_insert(self):
        for body in ('[{"key": "k1"', json.dumps([impression(time="soon")])):
            with self.subTest(body=body):
                result = await self._post(body)
                self.assertEqual(result.status_code, 500)
                self.assertEqual(result.body, "Error processing impressions.")
        self.gateway.insert_batch.assert_not_called()

    async def test_missing_field_rejects_whole_batch(self):
        broken = impression()
        del broken["sdk"]

        result = await self._post(json.dumps([EXAMPLE, broken]))

        self.assertEqual(result.status_code, 500)
        self.gateway.insert_batch.assert_not_called()

    async def test_bad_gzip_is_server_error(self):
        result = await self._post(b"\x1f\x8b\x08garbage")

        self.assertEqual(result.status_code, 500)
        self.gateway.ensure_schema.assert_not_called()

    async def test_schema_failure_is_server_error(self):
        self.gateway.ensure_schema.side_effect = PersistenceError("login failed")

        result = await self._post(json.dumps([EXAMPLE]))

        self.assertEqual(result.status_code, 500)
        self.assertNotIn("login failed", result.body)
        self.gateway.insert_batch.assert_not_called()

    async def test_insert_failure_is_server_error(self):
        self.gateway.insert_batch.side_effect = PersistenceError("timeout")

        result = await self._post(json.dumps([EXAMPLE]))

        self.assertEqual(result.status_code, 500)
        self.assertEqual(result.body, "Error processing impressions.")

    async def test_unexpected_error_is_server_error(self):
        self.gateway.insert_batch.side_effect = RuntimeError("boom")

        result = await self._post(json.dumps([EXAMPLE]))

        self.assertEqual(result.status_code, 500)

    async def test_query_parameters_are_logged(self):
        with self.assertLogs("impressions_webhook", level="INFO") as logs:
            await self._post(json.dumps([EXAMPLE]), query=[("source", "split"), ("tag", "a"), ("tag", "b")])

        self.assertIn("INFO:impressions_webhook:Query Parameters Received:", logs.output)
        self.assertIn("INFO:impressions_webhook:source: split", logs.output)
        self.assertIn("INFO:impressions_webhook:tag: a,b", logs.output)


if __name__ == "__main__":
    unittest.main()
