"""Run PersonaPass backend: python3 -m personapass"""

import uvicorn

from personapass.config import settings


def main() -> None:
    uvicorn.run("personapass.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
