#!/usr/bin/env python3
"""
Example script to wait for a task on a Proxmox node.

Logs in with username and password taken from the environment.

Usage: PVE_HOST=... PVE_USER=... PVE_PASSWORD=... python wait_task.py <node> <upid>
"""

import os
import sys

from proxmox_api import ProxmoxClient

def main():
    if len(sys.argv) != 3:
        print("Usage: python wait_task.py <node> <upid>")
        sys.exit(1)

    node = sys.argv[1]
    upid = sys.argv[2]

    try:
        client = ProxmoxClient({
            'hostname': os.environ.get('PVE_HOST'),
            'username': os.environ.get('PVE_USER'),
            'password': os.environ.get('PVE_PASSWORD'),
            'realm': os.environ.get('PVE_REALM'),
        })
        session = client.login()
        print(f"Logged in as {session.username}")

        print(f"Waiting for task {upid} on node {node}...")
        result = client.poll_task(node, upid)
        print(f"Task finished: {result['exitstatus']}")

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
