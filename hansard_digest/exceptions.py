"""
Exception hierarchy for the debate processing pipeline.

Every per-debate failure maps to one of these classes so the pipeline can
decide between "skipped" and "failed" without inspecting messages.

Responsibility: Typed errors shared across adapters, services and pipeline
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline errors"""


class UpstreamUnavailableError(PipelineError):
    """
    Records source or datastore is completely unreachable.

    The only error allowed to escape the per-debate boundary.
    """

    def __init__(self, service: str, message: str):
        super().__init__(f"{service} unavailable: {message}")
        self.service = service


class DivisionFetchError(PipelineError):
    """Division list for a debate could not be fetched"""


class LLMProviderError(PipelineError):
    """Transport or HTTP-level failure talking to the LLM provider"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RefusalError(PipelineError):
    """Provider explicitly declined to answer a generator prompt"""

    def __init__(self, generator: str, reason: str):
        super().__init__(f"{generator} refused: {reason}")
        self.generator = generator
        self.reason = reason


class AnalysisError(PipelineError):
    """AI analysis could not produce a content bundle"""


class AnalysisRefusedError(AnalysisError):
    """At least one generator was refused; the whole debate is dropped"""


class PersistenceError(PipelineError):
    """Base class for datastore write failures"""


class DatastoreTimeoutError(PersistenceError):
    """Statement timeout; safe to retry"""


class ExistingContentReadError(PersistenceError):
    """Stored content could not be read back before a merge"""

    def __init__(self, ext_id: str, cause: Exception):
        super().__init__(f"Could not read existing content for {ext_id}: {cause}")
        self.ext_id = ext_id
        self.cause = cause


class VectorIngestError(PipelineError):
    """Bulk ingest into a vector store failed"""


class VectorIngestTimeoutError(VectorIngestError):
    """File batch did not finish within the polling ceiling"""
