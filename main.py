import sys
import uvicorn

def run_http(reload: bool = False):
    """Run the API server on port 9106"""
    print("Starting HTTP server on port 9106...")
    uvicorn.run(
        "approval_system.main:app",
        host="0.0.0.0",
        port=9106,
        reload=reload,
    )

if __name__ == "__main__":
    run_http(reload="--reload" in sys.argv)
