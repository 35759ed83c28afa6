"""
Serving — FastAPI application and KServe runtime.

These modules are transport only: every request is delegated to
:class:`source_qa.service.SourceQAService`.
"""
