"""
Core Package.

Contains the lowered tree model, the safety oracle, analysis results and the
engine wiring hosts to the analysis.

Modules:
    - ``hir``: Host-independent tree structures.
    - ``oracle``: The `SafetyOracle` and the `SemanticModel` protocol.
    - ``finding``: `Finding` and `AnalysisResult` models.
    - ``engine``: The `LintEngine` facade.
    - ``lint``: Lint metadata and explanation text.
    - ``errors``: Host-layer exceptions.
"""
