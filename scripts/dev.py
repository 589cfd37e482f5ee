import os
import sys
import uvicorn
from dotenv import load_dotenv

def mint_token(subject: str, role: str):
    """Print a locally signed access token for calling the API by hand."""
    from command_center.security.auth import create_access_token
    print(create_access_token({"sub": subject, "email": f"{subject}@localhost", "app_metadata": {"role": role}}))

def main():
    base_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    dotenv_path = os.path.join(base_dir, '.env')
    print(f"Loading env from {dotenv_path}...")
    load_dotenv(dotenv_path)
    sys.path.insert(0, base_dir)

    if len(sys.argv) > 1 and sys.argv[1] == "token":
        subject = sys.argv[2] if len(sys.argv) > 2 else "local-admin"
        role = sys.argv[3] if len(sys.argv) > 3 else "ADMIN"
        mint_token(subject, role)
        return

    db_url = os.environ.get("DATABASE_URL")
    print(f"DATABASE_URL: {db_url[:20]}..." if db_url else "DATABASE_URL: NOT FOUND (using sqlite default)")

    print("Starting app at http://0.0.0.0:8000")
    uvicorn.run("command_center.main:app", host="0.0.0.0", port=8000, reload=False)

if __name__ == "__main__":
    main()
