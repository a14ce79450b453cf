"""Offload decision strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING

from offload_sim.config import ConfigurationError, ControllerKind
from offload_sim.controllers.base import OffloadController
from offload_sim.controllers.proportional import ProportionalFeedbackController
from offload_sim.controllers.reactive import ReactiveController
from offload_sim.controllers.sketch import SketchBasedController
from offload_sim.controllers.static import StaticController

if TYPE_CHECKING:
    from offload_sim.config import SimulationConfig

CONTROLLERS: dict[ControllerKind, type[OffloadController]] = {
    ControllerKind.STATIC: StaticController,
    ControllerKind.REACTIVE: ReactiveController,
    ControllerKind.PROPORTIONAL: ProportionalFeedbackController,
    ControllerKind.SKETCH: SketchBasedController,
}


def build_controller(config: SimulationConfig) -> OffloadController:
    controller_cls = CONTROLLERS.get(config.controller)
    if controller_cls is None:
        raise ConfigurationError([f"unknown controller variant {config.controller!r}"])
    return controller_cls(config)


__all__ = [
    "CONTROLLERS",
    "OffloadController",
    "ProportionalFeedbackController",
    "ReactiveController",
    "SketchBasedController",
    "StaticController",
    "build_controller",
]
