"""GitHub webhook handling: headers, signatures, payloads and the router."""
