#!/usr/bin/env python3
"""
Example script to list the nodes of a Proxmox cluster.

Usage: python list_nodes.py [config.yaml]
"""

import sys

from proxmox_api import load_client

def main():
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    try:
        client = load_client(config_path)
        nodes = client.get('/nodes')['data']

        print("Nodes in cluster:")
        print("-" * 50)
        for node in nodes:
            print(f"Node: {node['node']}, Status: {node.get('status', 'N/A')}, CPU: {node.get('cpu', 0):.1%}")

    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
