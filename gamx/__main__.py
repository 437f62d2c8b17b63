from gamx.cli import app

app(prog_name="gamx")
