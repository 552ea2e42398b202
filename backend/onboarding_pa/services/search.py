from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from ..config import settings
from ..errors import UpstreamError

logger = logging.getLogger("onboarding_pa.search")

IPA_INDEX = "indicepa"


class PublicAdministration(BaseModel):
    description: str | None = None
    ipa: str | None = None
    pec: str | None = None


async def get_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.ipa_elasticsearch_endpoint,
        timeout=settings.ipa_search_timeout_seconds,
        follow_redirects=True,
    )


def build_search_query(search: str) -> dict[str, Any]:
    """Full-text query over the administration and its offices."""
    return {
        "query": {
            "bool": {
                "should": [
                    {
                        "nested": {
                            "path": "office",
                            "query": {
                                "multi_match": {
                                    "fields": ["office.code", "office.description"],
                                    "operator": "and",
                                    "query": search,
                                }
                            },
                        }
                    },
                    {
                        "multi_match": {
                            "fields": ["ipa", "description"],
                            "operator": "and",
                            "query": search,
                        }
                    },
                ]
            }
        }
    }


def _hit_sources(body: Any) -> list[dict[str, Any]]:
    hits = body.get("hits") if isinstance(body, dict) else None
    hits = hits.get("hits") if isinstance(hits, dict) else None
    if not isinstance(hits, list) or not all(isinstance(hit, dict) for hit in hits):
        logger.error("IPA search returned an unexpected body shape")
        raise UpstreamError()
    sources = [hit.get("_source") or {} for hit in hits]
    if not all(isinstance(source, dict) for source in sources):
        logger.error("IPA search returned an unexpected hit source")
        raise UpstreamError()
    return sources


async def search_public_administrations(search: str) -> list[PublicAdministration]:
    client = await get_client()
    try:
        async with client:
            response = await client.post(
                f"/{IPA_INDEX}/_search", json=build_search_query(search)
            )
            response.raise_for_status()
            body = response.json()
    except ValueError as exc:
        logger.error("IPA search returned a non-JSON body error=%s", exc)
        raise UpstreamError() from exc
    except httpx.HTTPStatusError as exc:
        logger.error(
            "IPA search rejected status=%s error=%s", exc.response.status_code, exc
        )
        raise UpstreamError() from exc
    except httpx.RequestError as exc:
        logger.error("IPA search request failed error=%s", exc)
        raise UpstreamError() from exc

    return [
        PublicAdministration(
            description=source.get("description"),
            ipa=source.get("ipa"),
            pec=source.get("pec"),
        )
        for source in _hit_sources(body)
    ]
