"""CLI entrypoint for Knowledge Cache."""

from __future__ import annotations

import json
import os
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="kbc", help="Knowledge Cache command-line interface")

DEFAULT_HOST = "http://127.0.0.1:8000"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("KBC_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=120, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def retrieve(
    q: str = typer.Argument(..., help="Query text"),
    max_results: Optional[int] = typer.Option(None, "--max-results", "-k", help="Number of passages to return"),
    source: Optional[List[str]] = typer.Option(
        None, "--source", help="Limit to public_docs, internal_pages or ticket_history (repeatable)"
    ),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Retrieve grounding passages for a query."""
    payload: dict[str, object] = {"query": q}
    if max_results is not None:
        payload["max_results"] = max_results
    if source:
        payload["sources"] = list(source)
    resp = _request("POST", "/retrieve", host=host, json=payload)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def crawl(
    secret: Optional[str] = typer.Option(None, "--secret", envvar="KBC_CRON_SECRET", help="Crawl trigger secret"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Crawl the help center and refresh the cache."""
    headers = {"Authorization": f"Bearer {secret}"} if secret else {}
    resp = _request("GET", "/cron/crawl", host=host, headers=headers)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command("cache-status")
def cache_status(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show when the cache was last refreshed."""
    resp = _request("GET", "/cache/metadata", host=host)
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def serve(
    bind: str = typer.Option("127.0.0.1", "--bind", help="Interface to bind to"),
    port: int = typer.Option(8000, "--port", help="Port to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the API server."""
    import uvicorn

    uvicorn.run("knowledge_cache.app:app", host=bind, port=port, reload=reload, log_level="info")


if __name__ == "__main__":
    app()
