"""Run the API server: ``python -m gtd_core`` or ``gtd-core``."""
import os


def main() -> None:
    import uvicorn

    port = int(os.getenv("PORT", 3001))
    uvicorn.run("gtd_core.api.main:app", host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    main()
