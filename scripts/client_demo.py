#!/usr/bin/env python3
import argparse, requests

def main():
    ap = argparse.ArgumentParser()
    ap.add_argument("--api", required=True)            # ej. http://127.0.0.1:5000
    ap.add_argument("--peers", default="")             # ej. http://127.0.0.1:5001,http://127.0.0.1:5002
    ap.add_argument("--sender", default="alice")
    ap.add_argument("--recipient", default="bob")
    ap.add_argument("--amount", type=int, default=10)
    ap.add_argument("--fee", type=int, default=1)
    ap.add_argument("--timeout", type=float, default=120.0)  # mining has no upper bound
    args = ap.parse_args()

    # REGISTER
    peers = [x.strip() for x in args.peers.split(",") if x.strip()]
    if peers:
        r = requests.post(f"{args.api}/nodes/register", json={"nodes": peers}, timeout=args.timeout)
        print("REGISTER", r.status_code, r.text)

    # TRANSACTION
    r = requests.post(f"{args.api}/transactions/new", json={
        "sender": args.sender, "recipient": args.recipient,
        "amount": args.amount, "fee": args.fee
    }, timeout=args.timeout)
    print("TRANSACTION", r.status_code, r.text)

    # MINE
    r = requests.get(f"{args.api}/mine", timeout=args.timeout)
    print("MINE", r.status_code, r.text)

    # RESOLVE
    r = requests.get(f"{args.api}/nodes/resolve", timeout=args.timeout)
    print("RESOLVE", r.status_code, r.json().get("message"))

    # CHAIN
    r = requests.get(f"{args.api}/chain", timeout=args.timeout)
    print("CHAIN", r.status_code, "length =", r.json().get("length"))

if __name__ == "__main__":
    main()
