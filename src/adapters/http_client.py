"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza headers y política de redirects para todas las fuentes.
- Facilita testeo: se puede sustituir el transporte por `httpx.MockTransport`.

Los timeouts son por tier, así que cada fuente pasa el suyo en cada request.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza headers para que todas las fuentes se comporten igual.
    - El timeout por defecto es el más largo de los tiers; nunca se bloquea
      indefinidamente aunque una fuente olvide pasar el suyo.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.bulk_batch_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )
