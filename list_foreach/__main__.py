from list_foreach.cli.main import app

app()
