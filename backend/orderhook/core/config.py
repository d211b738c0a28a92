from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    owner_email: str = ""
    lemonsqueezy_signing_secret: str = ""
    nowpayments_ipn_secret: str = ""
    send_buyer_confirmation: bool = False
    buyer_sender_name: str = "Faris • Coding Engineer"
    sign_off_name: str = "Faris"

    smtp_host: str = ""
    smtp_port: int = 465
    smtp_secure: bool = True
    smtp_user: str = ""
    smtp_pass: str = ""

    site_name: str = "GoldenSpaceAI"
    app_env: str = "dev"
    public_base_url: str = ""
    allowed_origins: str = "*"
    static_dir: str = "public"
    max_body_size: int = 1_048_576  # 1 MiB
    port: int = 3000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def sender_address(self) -> str:
        return f"Orders <{self.smtp_user}>"

    @property
    def buyer_sender_address(self) -> str:
        return f"{self.buyer_sender_name} <{self.smtp_user}>"


@lru_cache
def get_settings() -> Settings:
    return Settings()
