from dataclasses import dataclass

@dataclass(frozen=True)
class AppConfig:
    debug: bool = True
    log_level: str = "INFO"  # "DEBUG" to trace parser/layout detail
    default_mysql_port: int = 3306
    mysql_connect_timeout: int = 10
    sample_row_limit: int = 3  # rows shown to the model per table
    ollama_base_url: str = "http://localhost:11434"
    ollama_timeout: int = 120
    sql_run_timeout: int = 15
    result_page_size: int = 10
    initial_scale: float = 0.6
    default_container_width: int = 1000
