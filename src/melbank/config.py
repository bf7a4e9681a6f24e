import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from melbank.mel import MelFilterBank
from melbank.spectrum import PowerSpectrum

logger = logging.getLogger(__name__)


@dataclass
class FilterBankConfig:
    """
    Parameters of a mel feature front-end. Defaults suit 16 kHz speech.

    Values are not validated here; `MelFilterBank` and `PowerSpectrum`
    reject bad ones when built.
    """

    min_freq: float = 130.0
    max_freq: float = 6800.0
    filter_amount: int = 40
    sample_rate: int = 16000
    n_fft: int = 512
    lift_freq: float = 0.0
    win_length: Optional[int] = 400   # 25ms at 16kHz
    hop_length: Optional[int] = 160   # 10ms at 16kHz

    @property
    def energy_spectrum_size(self) -> int:
        return self.n_fft // 2

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "FilterBankConfig":
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown filter bank parameters: {', '.join(unknown)}")
        return cls(**values)

    @classmethod
    def load(cls, path: str) -> "FilterBankConfig":
        with open(path, "r", encoding="utf-8") as f:
            values = json.load(f)
        logger.info(f"Loaded filter bank config from {path}")
        return cls.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    def save(self, path: str) -> None:
        with open(path, mode="w", encoding="utf-8") as file:
            json.dump(self.to_dict(), file, indent=2)

    def build_filter_bank(self) -> MelFilterBank:
        return MelFilterBank(
            min_freq=self.min_freq,
            max_freq=self.max_freq,
            filter_amount=self.filter_amount,
            sample_rate=self.sample_rate,
            energy_spectrum_size=self.energy_spectrum_size,
            lift_freq=self.lift_freq,
        )

    def build_power_spectrum(self) -> PowerSpectrum:
        return PowerSpectrum(
            n_fft=self.n_fft,
            win_length=self.win_length,
            hop_length=self.hop_length,
        )
