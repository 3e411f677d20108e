"""
Terrain loading.

Decoding an image is the only slow, asynchronous step. Requests are
tagged with a per-body generation number; when a result arrives after a
newer request for the same body was made, it is dropped without
touching any state (latest request wins). Nothing is ever blocked or
forcibly cancelled.

A height mode change needs no decode: the committed image is
re-extracted on the spot, and a decode still in flight is re-extracted
with the newest mode when it lands, so a field built with an outdated
mode is never committed.
"""

import asyncio
import logging
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Set, Union

from common.config import Config, DEFAULT_CONFIG
from common.errors import ImageDecodeError
from terrain.heightfield import HeightField, HeightMode, extract_heights
from terrain.sampler import ImageSource, SampledImage, sample_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Terrain:
    """Decoded image and its height field."""
    image: SampledImage
    field: HeightField
    mode: HeightMode

    def with_mode(self, mode: Union[str, HeightMode]) -> "Terrain":
        """Same image, height field re-extracted with another mode."""
        mode = HeightMode.parse(mode)
        if mode is self.mode:
            return self
        image = self.image
        field_ = extract_heights(image.pixels, image.width, image.height, mode)
        return Terrain(image=image, field=field_, mode=mode)


@dataclass(frozen=True)
class LoadToken:
    body_id: str
    generation: int


def decode_terrain(
    source: ImageSource,
    mode: Union[str, HeightMode] = HeightMode.LUMINANCE,
    max_dimension: int = DEFAULT_CONFIG.max_image_dimension
) -> Terrain:
    """Sample an image and extract its height field (blocking)."""
    image = sample_image(source, max_dimension)
    mode = HeightMode.parse(mode)
    field_ = extract_heights(image.pixels, image.width, image.height, mode)
    return Terrain(image=image, field=field_, mode=mode)


class TerrainLoader:
    """
    Latest-request-wins terrain loading per body.

    Args:
        config: Configuration (uses defaults if None)
        executor: Executor for blocking decodes (asyncio default if None)
        decoder: Replacement for decode_terrain, called as
            decoder(source, mode, max_dimension)
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        executor: Optional[Executor] = None,
        decoder: Optional[Callable[..., Terrain]] = None
    ):
        self.config = config or DEFAULT_CONFIG
        self._executor = executor
        self._decoder = decoder or decode_terrain
        self._generations: Dict[str, int] = {}
        self._in_flight: Dict[str, int] = {}
        self._forgotten: Set[str] = set()
        self._modes: Dict[str, HeightMode] = {}
        self._terrains: Dict[str, Terrain] = {}

    def begin(self, body_id: str) -> LoadToken:
        """Start a request; any earlier in-flight request becomes stale."""
        self._forgotten.discard(body_id)
        generation = self._generations.get(body_id, 0) + 1
        self._generations[body_id] = generation
        self._in_flight[body_id] = self._in_flight.get(body_id, 0) + 1
        return LoadToken(body_id=body_id, generation=generation)

    def _finish(self, token: LoadToken) -> None:
        body_id = token.body_id
        remaining = self._in_flight.get(body_id, 0) - 1
        if remaining > 0:
            self._in_flight[body_id] = remaining
            return
        self._in_flight.pop(body_id, None)
        if body_id in self._forgotten:
            self._forgotten.discard(body_id)
            self._generations.pop(body_id, None)

    def is_current(self, token: LoadToken) -> bool:
        return self._generations.get(token.body_id) == token.generation

    def in_flight(self, body_id: str) -> int:
        return self._in_flight.get(body_id, 0)

    def commit(self, token: LoadToken, terrain: Terrain) -> bool:
        """Store a result if its request is still the latest."""
        self._finish(token)
        if not self.is_current(token):
            logger.debug(f"Discarding stale terrain for {token.body_id} "
                         f"(generation {token.generation})")
            return False
        mode = self._modes.get(token.body_id)
        if mode is not None and mode is not terrain.mode:
            logger.debug(f"Re-extracting {token.body_id} with {mode.value} on arrival")
            terrain = terrain.with_mode(mode)
        self._terrains[token.body_id] = terrain
        return True

    def terrain(self, body_id: str) -> Optional[Terrain]:
        return self._terrains.get(body_id)

    def field(self, body_id: str) -> Optional[HeightField]:
        terrain = self._terrains.get(body_id)
        return terrain.field if terrain is not None else None

    def apply_mode(self, body_id: str, mode: Union[str, HeightMode]) -> Optional[Terrain]:
        """
        Switch a body's height mode.

        The committed terrain (if any) is replaced by one re-extracted
        from the same image. Returns the body's terrain afterwards.
        """
        mode = HeightMode.parse(mode)
        self._modes[body_id] = mode
        terrain = self._terrains.get(body_id)
        if terrain is None or terrain.mode is mode:
            return terrain
        terrain = terrain.with_mode(mode)
        self._terrains[body_id] = terrain
        logger.info(f"Re-extracted heights for {body_id} ({mode.value})")
        return terrain

    def forget(self, body_id: str) -> None:
        """Drop a removed body; its in-flight requests become stale."""
        self._terrains.pop(body_id, None)
        self._modes.pop(body_id, None)
        if self._in_flight.get(body_id, 0) > 0:
            self._generations[body_id] = self._generations.get(body_id, 0) + 1
            self._forgotten.add(body_id)
        else:
            self._generations.pop(body_id, None)

    async def load(
        self,
        body_id: str,
        source: ImageSource,
        mode: Union[str, HeightMode] = HeightMode.LUMINANCE
    ) -> Optional[Terrain]:
        """
        Decode an image for a body.

        Returns:
            The committed Terrain, or None if a newer request superseded
            this one while it was decoding

        Raises:
            ImageDecodeError: If this (still current) request failed;
                the body's previous terrain is kept
        """
        token = self.begin(body_id)
        self._modes[body_id] = HeightMode.parse(mode)
        loop = asyncio.get_running_loop()
        try:
            terrain = await loop.run_in_executor(
                self._executor, self._decoder, source, mode, self.config.max_image_dimension
            )
        except ImageDecodeError as e:
            self._finish(token)
            if not self.is_current(token):
                logger.debug(f"Ignoring failure of superseded load for {body_id}: {e}")
                return None
            logger.error(f"Terrain load failed for {body_id}: {e}")
            raise
        except Exception:
            self._finish(token)
            raise

        if not self.commit(token, terrain):
            return None
        terrain = self._terrains[body_id]
        logger.info(f"Loaded terrain for {body_id}: {terrain.field.width}x{terrain.field.height} "
                    f"({terrain.mode.value})")
        return terrain

    def load_blocking(
        self,
        body_id: str,
        source: ImageSource,
        mode: Union[str, HeightMode] = HeightMode.LUMINANCE
    ) -> Optional[Terrain]:
        """Run load() to completion outside an event loop."""
        return asyncio.run(self.load(body_id, source, mode))
