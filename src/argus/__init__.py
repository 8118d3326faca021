"""argus - repository analysis engine for AI coding assistant context files.

argus scans a source repository once, runs a staged set of heuristic
detectors over the shared file inventory, and combines their facets into a
single Analysis record. Generators turn that record into CLAUDE.md,
.cursorrules, Copilot instructions and similar context files.

Core properties:
- Deterministic: the same inventory and file bytes produce an equal Analysis
- Staged parallelism: tech stack and structure first, independent facets next,
  dependent facets last
- Incremental: a single changed path re-runs only the affected detectors
- Monorepo aware: the pipeline runs once per resolved workspace
"""

__version__ = "0.1.0"
__author__ = "argus contributors"
