"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants, request helper with typed errors
    └── {feature}.py      # Fetch + parse functions (one per endpoint/concept)

Current sources: ``gbif/`` (occurrence search, vernacular names) and
``wikidata/`` (taxon media via SPARQL).

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.

2. Write fetch functions that return pydantic models from ``schemas.py``,
   and turn failures into ``RemoteFetchFailed`` / ``MalformedResponse``::

       from biodiversity_nearby.services.http import fetch_json

       def fetch_something(taxon_id: int) -> list[MediaItem]:
           status, body = fetch_json(API_URL, params={...})
           if not isinstance(body, dict):
               raise MalformedResponse(status, API_URL, "expected a JSON object")
           return [...]

3. Re-export public API in ``__init__.py`` with ``__all__``.

4. Inject the fetch function where it is consumed (``cache.CellCacheStore``
   takes ``search=``, ``enrichment.EnrichmentLookup`` takes ``fetch_name=`` /
   ``fetch_media=``) so tests can substitute fakes.

5. Add tests in ``tests/test_{name}.py``.
"""
