from tuteliq_mcp.cli import run

run()
