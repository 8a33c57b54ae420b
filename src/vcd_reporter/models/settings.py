from pydantic import BaseModel, ConfigDict, Field


class ReporterSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    mhz_per_vcpu: float = Field(default=2000.0, gt=0)
    billing_mhz_per_vcpu: float = Field(default=2800.0, gt=0)
    vcpu_ratio: float = Field(default=3.0, gt=0)  # vCPU:pCPU oversubscription, 3 for 3:1
    saturation_threshold: float = Field(default=0.9, gt=0)
    bar_warning_pct: float = 75.0
    bar_critical_pct: float = 90.0
    tb_threshold_mb: float = 1_000_000.0

    @property
    def ratio_label(self) -> str:
        ratio = int(self.vcpu_ratio) if float(self.vcpu_ratio).is_integer() else self.vcpu_ratio
        return f"{ratio}:1"
