from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace

from gridpic.display import to_data_url
from gridpic.errors import AcquireError, GridpicError, NoInputSelected
from gridpic.grid import encode_grid
from gridpic.quantize import QuantizationConfig, quantize
from gridpic.raster import decode_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineOutput:
    display: str  # data:image/png;base64,...
    grid: str


@dataclass(frozen=True)
class Success:
    output: PipelineOutput


@dataclass(frozen=True)
class Failure:
    error: GridpicError

    @property
    def message(self) -> str:
        return str(self.error)


Result = Success | Failure


def display_only(data: bytes) -> str:
    """Decode and re-encode for display, without quantizing."""
    return to_data_url(decode_image(data))


def process_image(data: bytes, config: QuantizationConfig | None = None) -> PipelineOutput:
    """Decode ``data`` and return the display URL and the quantized grid.

    Both outputs come from the same decoded raster. The first error raised
    propagates; nothing is returned partially.
    """
    if config is None:
        config = QuantizationConfig()
    start = time.perf_counter()
    raster = decode_image(data)
    display = to_data_url(raster)
    indices = quantize(raster, config)
    grid = encode_grid(indices, config.levels)
    logger.debug(
        "Processed %dx%d image in %.1fms", raster.width, raster.height, (time.perf_counter() - start) * 1000
    )
    return PipelineOutput(display=display, grid=grid)


def run_pipeline(data: bytes | None, config: QuantizationConfig | None = None) -> Result:
    """Run process_image and report the outcome as a Success or Failure."""
    try:
        if data is None:
            raise NoInputSelected()
        return Success(process_image(data, config))
    except GridpicError as e:
        logger.warning("Pipeline failed: %s", e)
        return Failure(e)


async def _read(acquire: Callable[[], Awaitable[bytes | None]]) -> bytes | None:
    try:
        return await acquire()
    except OSError as e:
        raise AcquireError(f"Failed to read file: {e}") from e


@dataclass(frozen=True)
class ViewState:
    """What the front end shows. Replaced wholesale on every update."""

    generation: int = 0
    display: str | None = None
    grid: str | None = None
    error: str | None = None
    is_processing: bool = False


class Session:
    """Runs submissions and keeps only the newest one's result.

    Each submit() takes the next generation number. When a run finishes, its
    result is applied only if no newer submission has started meanwhile.
    """

    def __init__(self, config: QuantizationConfig | None = None):
        self.config = config or QuantizationConfig()
        self.state = ViewState()
        self._generation = 0
        self._listeners: list[Callable[[ViewState], None]] = []

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, listener: Callable[[ViewState], None]) -> None:
        self._listeners.append(listener)

    def _publish(self, state: ViewState) -> None:
        self.state = state
        for listener in self._listeners:
            listener(state)

    def begin(self) -> int:
        self._generation += 1
        self._publish(replace(self.state, generation=self._generation, is_processing=True))
        return self._generation

    def apply(self, generation: int, result: Result) -> bool:
        """Apply a finished run's result. Returns False if it was superseded."""
        if generation != self._generation:
            logger.info("Discarding result of generation %d (latest is %d)", generation, self._generation)
            return False
        if isinstance(result, Success):
            state = ViewState(generation, display=result.output.display, grid=result.output.grid)
        else:
            state = ViewState(generation, error=result.message)
        self._publish(state)
        return True

    async def submit(
        self,
        acquire: Callable[[], Awaitable[bytes | None]],
        config: QuantizationConfig | None = None,
    ) -> Result:
        """Acquire image bytes, run the pipeline and apply the result if still current."""
        generation = self.begin()
        try:
            try:
                data = await _read(acquire)
            except GridpicError as e:
                logger.warning("Acquiring image failed: %s", e)
                result: Result = Failure(e)
            else:
                result = run_pipeline(data, config or self.config)
            self.apply(generation, result)
            return result
        finally:
            if generation == self._generation and self.state.is_processing:
                self._publish(replace(self.state, is_processing=False))
