# services/impressions_webhook.py
from dataclasses import dataclass
from typing import AsyncIterable, Iterable, Optional, Tuple, Union

from config.settings import settings
from core.errors import DecodeError, PersistenceError
from core.logger import logger
from infrastructure.impression_gateway import ImpressionGateway
from services.body_decoder import decode_body
from services.payload_parser import ParseStatus, parse_impressions
from utils.timer import StepTimer


@dataclass(frozen=True)
class WebhookResult:
    status_code: int
    body: Optional[str] = None


OK = WebhookResult(200, settings.SUCCESS_MESSAGE)
BAD_REQUEST = WebhookResult(400)
SERVER_ERROR = WebhookResult(500, settings.ERROR_MESSAGE)


class ImpressionsWebhookService:
    """
    Handles one webhook delivery of impressions.

    Flow:
    - Logs the query string (diagnostics only).
    - Decodes the body, gunzipping when it starts with the gzip magic number.
    - Parses the JSON array; an empty array is a client error.
    - Creates the Impressions table if missing, then inserts every record.

    Any failure other than an empty batch becomes a 500 with a fixed message;
    the detail only goes to the log.
    """

    def __init__(self, gateway: ImpressionGateway):
        self.gateway = gateway

    async def handle(self, query_params: Iterable[Tuple[str, str]],
                     body: Union[AsyncIterable[bytes], bytes]) -> WebhookResult:
        timer = StepTimer()
        try:
            self._log_query_params(query_params)

            with timer.time("decode"):
                text = await decode_body(body)

            with timer.time("parse"):
                result = parse_impressions(text)

            if result.status is ParseStatus.INVALID:
                logger.error(f"Error processing impressions: invalid payload: {result.error}")
                return SERVER_ERROR
            if result.status is ParseStatus.EMPTY:
                logger.warning(str(result.error))
                return BAD_REQUEST

            logger.info("Ensuring table exists...")
            with timer.time("ensure_schema"):
                await self.gateway.ensure_schema()

            logger.info(f"Inserting {len(result.impressions)} impressions...")
            with timer.time("insert"):
                await self.gateway.insert_batch(result.impressions)

            return OK
        except (DecodeError, PersistenceError) as e:
            logger.error(f"Error processing impressions: {e}")
            return SERVER_ERROR
        except Exception as e:
            logger.exception(f"Unexpected error processing impressions: {e}")
            return SERVER_ERROR
        finally:
            timer.log()

    @staticmethod
    def _log_query_params(query_params: Iterable[Tuple[str, str]]) -> None:
        logger.info("Query Parameters Received:")
        grouped = {}
        for name, value in query_params:
            grouped.setdefault(name, []).append(value)
        for name, values in grouped.items():
            logger.info(f"{name}: {','.join(values)}")
