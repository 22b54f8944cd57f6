# server_entry.py
import os
from agritrade import create_app

def main():
    port = int(os.environ.get("PORT", "5000"))
    app = create_app()
    app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

if __name__ == "__main__":
    main()
