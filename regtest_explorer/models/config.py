"""Configuration management using Pydantic settings."""

from typing import List, Optional
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExplorerConfig(BaseSettings):
    """Configuration for the regtest block explorer."""

    # Bitcoin Core RPC Settings
    bitcoin_rpc_host: str = Field(default="localhost", description="Bitcoin Core RPC host")
    bitcoin_rpc_port: int = Field(default=18443, description="Bitcoin Core RPC port (regtest)")
    bitcoin_rpc_user: str = Field(default="test", description="Bitcoin Core RPC username")
    bitcoin_rpc_password: str = Field(default="test123", description="Bitcoin Core RPC password")
    bitcoin_rpc_timeout: float = Field(default=30.0, description="Per-call RPC timeout in seconds")
    bitcoin_rpc_retry_attempts: int = Field(default=2, description="Attempts for connection-level RPC failures")
    bitcoin_rpc_retry_delay: float = Field(default=1.0, description="Delay between RPC attempts in seconds")

    # Scan Ceilings
    scan_max_blocks: int = Field(default=50, description="Blocks scanned for recent transactions")
    address_history_window: int = Field(default=100, description="Blocks scanned for address history")
    mempool_max_transactions: int = Field(default=50, description="Mempool transactions enriched per request")
    block_list_limit: int = Field(default=10, description="Default number of blocks listed")
    transaction_page_size: int = Field(default=20, description="Default transactions per page")

    # Enrichment
    enable_parallel_resolution: bool = Field(default=False, description="Resolve transaction inputs concurrently")
    resolution_workers: int = Field(default=4, description="Worker threads for input resolution")

    # Fee Advisor
    fee_fallback_sat_per_vbyte: int = Field(default=1, description="Fee rate used when estimation fails")

    # Retarget Projection
    retarget_interval: int = Field(default=2016, description="Blocks between difficulty adjustments")
    target_block_time: int = Field(default=600, description="Expected seconds between blocks")
    retarget_min_sample: int = Field(default=10, description="Blocks into the epoch before projecting")
    retarget_sample_size: int = Field(default=10, description="Recent block timestamps sampled")
    retarget_change_min: float = Field(default=-75.0, description="Lower clamp for estimated change %")
    retarget_change_max: float = Field(default=300.0, description="Upper clamp for estimated change %")

    # Logging Settings
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size_mb: int = Field(default=10, description="Max log file size in MB")
    log_backup_count: int = Field(default=3, description="Number of log backups")

    # API Server Settings
    api_host: str = Field(default="127.0.0.1", description="API server host")
    api_port: int = Field(default=8080, description="API server port")
    cors_origins: List[str] = Field(default=["*"], description="CORS allowed origins")
    enable_metrics: bool = Field(default=True, description="Expose Prometheus metrics")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        'scan_max_blocks', 'address_history_window', 'mempool_max_transactions',
        'block_list_limit', 'transaction_page_size', 'resolution_workers',
        'retarget_interval', 'target_block_time', 'retarget_sample_size',
        'bitcoin_rpc_retry_attempts',
    )
    @classmethod
    def validate_positive(cls, v):
        """Scan ceilings and intervals must be positive."""
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @field_validator('fee_fallback_sat_per_vbyte')
    @classmethod
    def validate_fallback_rate(cls, v):
        if v < 1:
            raise ValueError("fallback fee rate must be at least 1 sat/vB")
        return v

    @field_validator('retarget_sample_size')
    @classmethod
    def validate_sample_size(cls, v):
        if v < 2:
            raise ValueError("at least two timestamps are needed to measure block time")
        return v

    @model_validator(mode='after')
    def validate_clamp_range(self):
        if self.retarget_change_min >= self.retarget_change_max:
            raise ValueError("retarget_change_min must be below retarget_change_max")
        return self

    @property
    def bitcoin_rpc_url(self) -> str:
        """Generate Bitcoin Core RPC URL."""
        return f"http://{self.bitcoin_rpc_host}:{self.bitcoin_rpc_port}"
