import dataclasses
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Protocol, Sequence

import numpy as np


@dataclass(frozen=True, eq=False)
class FrameData:
    """
    One frame flowing through a processing pipeline.

    Parameters
    ----------
    data : np.ndarray
        Numeric payload (samples, spectrum or features).
    index : int, default=0
        Position of the frame in its stream.
    sample_rate : Optional[int], default=None
        Sampling rate of the audio the frame was taken from.
    """

    data: np.ndarray
    index: int = 0
    sample_rate: Optional[int] = None

    def copy(self, data: np.ndarray) -> "FrameData":
        """New frame carrying `data`, all other fields unchanged."""
        return dataclasses.replace(self, data=data)


class FrameProcessor(Protocol):
    def process(self, frame: FrameData) -> FrameData:
        ...


def run_pipeline(
    frames: Iterable[FrameData], processors: Sequence[FrameProcessor]
) -> Iterator[FrameData]:
    """Lazily pass every frame through `processors` in order."""
    for frame in frames:
        for processor in processors:
            frame = processor.process(frame)
        yield frame
