from screening_engine.cli import app

if __name__ == "__main__":
    app()
