from n8n_mcp.main import main

main()
