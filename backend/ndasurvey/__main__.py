import os

import uvicorn


def main():
    port = int(os.getenv("PORT", "5001"))
    uvicorn.run("ndasurvey.main:app", host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    main()
