"""Detector registry.

The registry keeps the available detectors in registration order. The
pipeline asks it for the detectors of each stage; the incremental engine
asks for detectors by name.
"""

from argus.analyzers.base import Detector


class DetectorRegistry:
    """Registry of detector classes keyed by detector name.

    Registration order is significant: it is the order in which stage 3
    detectors run and in which results are applied.
    """

    def __init__(self) -> None:
        self._detectors: dict[str, type[Detector]] = {}

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, detector_class: type[Detector]) -> None:
        """Register a detector class.

        Raises:
            ValueError: If the class has no name or the name is taken
        """
        name = detector_class.name
        if not name:
            raise ValueError(f"Detector {detector_class.__name__} has no name")
        if name in self._detectors:
            raise ValueError(f"Detector already registered: {name}")
        self._detectors[name] = detector_class

    # =========================================================================
    # Retrieval
    # =========================================================================

    def get(self, name: str) -> Detector:
        """Get a detector instance by name.

        Raises:
            KeyError: If no detector with that name is registered
        """
        if name not in self._detectors:
            available = list(self._detectors.keys())
            raise KeyError(f"Detector '{name}' not registered. Available: {available}")
        return self._detectors[name]()

    def for_stage(self, stage: int) -> list[Detector]:
        return [cls() for cls in self._detectors.values() if cls.stage == stage]

    def select(self, names: set[str]) -> list[Detector]:
        """Instances for the given names, in registration order."""
        return [cls() for name, cls in self._detectors.items() if name in names]

    # =========================================================================
    # Introspection
    # =========================================================================

    def list_detectors(self) -> list[str]:
        return list(self._detectors.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._detectors

