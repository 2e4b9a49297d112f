from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # 运行环境：development 时跳过 Basic 认证
    environment: str = "production"

    # Web 服务监听地址
    host: str = "0.0.0.0"
    port: int = 8000

    # Basic 认证（管理员 / 普通用户）
    basic_admin_id: str = ""
    basic_admin_pwd: str = ""
    basic_user_id: str = ""
    basic_user_pwd: str = ""

    # 分享链接的前缀，例如 https://checker.example.com/
    public_base_url: str = "http://localhost:8000/"

    # 图片存储（本地目录 + 对外访问前缀）
    upload_dir: str = "uploads"
    upload_url_prefix: str = "/uploads"

    # 导出图片/PDF 配置
    export_font_path: str = ""  # 为空时使用 Pillow 默认字体
    remote_image_timeout: float = 5.0

    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "granblue_asset_checker"
    database_user: str = "postgres"
    database_password: str = ""
    # 直接指定完整连接串（优先级最高，测试中使用 sqlite://）
    database_dsn: str = ""

    @property
    def database_url(self) -> str:
        if self.database_dsn:
            return self.database_dsn
        return f"postgresql://{self.database_user}:{self.database_password}@{self.database_host}:{self.database_port}/{self.database_name}"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def is_auth_configured(self) -> bool:
        """检查 Basic 认证是否配置了管理员账号"""
        return bool(self.basic_admin_id and self.basic_admin_pwd)

    @property
    def share_base_url(self) -> str:
        """分享链接基础地址（保证以 / 结尾）"""
        base = self.public_base_url or "/"
        return base if base.endswith("/") else f"{base}/"


settings = Settings()
