from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Fairness scoring policy
    FAIRNESS_RETAIL_CEILING: float = 10_000
    FAIRNESS_RETAIL_WEIGHT_LEND: int = 20
    FAIRNESS_RETAIL_WEIGHT_BORROW: int = 10
    FAIRNESS_RETAIL_CAP_MAX: int = 30
    FAIRNESS_DIVERSITY_BONUS: int = 15
    FAIRNESS_PRIORITY_BONUS: int = 25
    FAIRNESS_CONCENTRATION_THRESHOLD: float = 100_000
    FAIRNESS_CONCENTRATION_STEP: float = 10_000
    FAIRNESS_CONCENTRATION_CAP_MAX: int = 20
    FAIRNESS_BASE_SCORE: int = 50

    # Attestation. No key by default: matches resolve to EnclaveUnavailable
    ATTESTOR_SIGNING_KEY: str | None = None  # hex Ed25519 seed (32 bytes)
    ENCLAVE_URL: str | None = None
    ENCLAVE_PUBLIC_KEY: str | None = None  # hex, registered out of band
    ATTESTOR_GENERATE_EPHEMERAL_KEY: bool = False  # local dev only
    ATTESTATION_TIMEOUT_SECONDS: float = 5.0
    ENCLAVE_PCR0: str = "0x" + "00" * 48
    ENCLAVE_PCR1: str = "0x" + "00" * 48
    ENCLAVE_PCR2: str = "0x" + "00" * 48

    # Price oracle
    PRICE_ORACLE: str = "memory"  # memory | pyth
    PYTH_HERMES_URL: str = "https://hermes.pyth.network"
    PRICE_MAX_AGE_SECONDS: float = 60.0
    ORACLE_TIMEOUT_SECONDS: float = 2.0

    # Positions
    LIQUIDATION_COLLATERAL_RATIO: float = 0.8
    DEFAULT_COLLATERAL_ASSET: str = "SUI"
    DEFAULT_COLLATERAL_FACTOR: float = 1.5

    # Settlement. Unset: attested matches are verified and recorded in memory
    SETTLEMENT_URL: str | None = None

    # App
    APP_NAME: str = "Equinox Matching"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
