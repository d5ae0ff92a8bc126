import uvicorn

from .config import load_config


def main():
    config = load_config()
    uvicorn.run("relaychess.web.app:app", host=config['server']['host'], port=config['server']['port'])


if __name__ == '__main__':
    main()
