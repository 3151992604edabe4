import os

import uvicorn

from task_exec.config import configure_logging


def main() -> None:
    configure_logging()
    port = int(os.getenv("PORT", 8765))
    uvicorn.run("task_exec.api:app", host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    main()
