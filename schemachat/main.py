# To run:
# python -m schemachat.main


import logging
import traceback
import tkinter as tk
from tkinter import ttk

from schemachat.config import AppConfig
from schemachat.logging_setup import setup_logging
from schemachat.gui_home import App

logger = logging.getLogger("main")


def main() -> int:
    cfg = AppConfig()

    setup_logging(cfg.log_level)
    logger.info("SchemaChat booting (model server %s)...", cfg.ollama_base_url)

    try:
        root = tk.Tk()
        ttk.Style().theme_use("clam")
        App(root, cfg)
        root.mainloop()
        return 0
    except Exception as exc:
        logger.error("Unhandled error: %s", exc)
        if cfg.debug:
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
