"""
AI analysis package.

Taxonomy, transcript building, generators, spelling normalization and the
orchestrator that ties them together. Import from the submodules
(``analysis.orchestrator``, ``analysis.taxonomy``...) directly; the
processing package depends on the taxonomy and is itself used by the
orchestrator.
"""
