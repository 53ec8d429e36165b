import asyncio
import json
import sys
from asyncio.subprocess import PIPE, create_subprocess_exec

class MCPClient:
    def __init__(self, process):
        self.process = process
        self.request_id = 1

    async def _send_request(self, method: str, params: dict) -> dict:
        self.request_id += 1
        request = { "jsonrpc": "2.0", "method": method, "params": params, "id": self.request_id }
        request_str = json.dumps(request) + "\n"
        self.process.stdin.write(request_str.encode("utf-8"))
        await self.process.stdin.drain()
        response_str = await self.process.stdout.readline()
        if not response_str: raise Exception("No response from server")
        return json.loads(response_str)

    async def initialize(self):
        init_request = { "jsonrpc": "2.0", "method": "initialize", "params": { "protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": {"name": "coromondex-client", "version": "1.0.0"} }, "id": 1 }
        init_str = json.dumps(init_request) + "\n"
        self.process.stdin.write(init_str.encode("utf-8"))
        await self.process.stdin.drain()
        await self.process.stdout.readline() # Read and discard the response
        initialized_notif = { "jsonrpc": "2.0", "method": "notifications/initialized", "params": {} }
        init_str = json.dumps(initialized_notif) + "\n"
        self.process.stdin.write(init_str.encode("utf-8"))
        await self.process.stdin.drain()

    async def call_tool(self, name: str, arguments: dict) -> dict:
        return await self._send_request("tools/call", { "name": name, "arguments": arguments })

    async def resolve_coromon(self, coromon: str):
        return await self.call_tool("resolve_coromon", { "req": { "coromon": coromon } })

    async def type_matchup(self, attacking: str, defending: list):
        return await self.call_tool("type_matchup", { "req": { "attacking": attacking, "defending": defending } })

    async def evolution_lines(self):
        return await self.call_tool("evolution_lines", {})

def _result(response: dict):
    if "error" in response:
        print(f"\n--- SERVER ERROR ---\n{json.dumps(response['error'], indent=2)}")
        return None
    result = response.get("result", {})
    if result.get("isError"):
        text = " ".join(c.get("text", "") for c in result.get("content", []))
        print(f"Error: {text}")
        return None
    return result.get("structuredContent")

def print_line(coromon: str, lines: list):
    wanted = coromon.lower()
    for line in lines:
        stages = [s.lower() for s in line["evolution_line"].split(" -> ")]
        if wanted in stages:
            print(line["evolution_line"])
            return
    print(f"No evolution line found for {coromon.title()} (Titans never evolve).")

async def main():
    print("Starting MCP server...")
    process = await create_subprocess_exec(
        sys.executable, "server.py", stdin=PIPE, stdout=PIPE, stderr=PIPE
    )
    client = MCPClient(process)

    try:
        await asyncio.sleep(3)
        if process.returncode is not None:
            print("FATAL: Server failed to start!")
            stderr = await process.stderr.read()
            print(f"--- SERVER ERROR ---\n{stderr.decode()}")
            return

        await client.initialize()
        print("\n=== Coromondex Client ===")
        print("Commands: 'line <coromon>', 'traits <coromon>', 'matchup <type> vs <type>[,<type>]' or 'exit'")
        print("-" * 40)

        while True:
            command = input("> ").strip()
            if command.lower() == "exit": break
            if not command: continue

            verb, _, rest = command.partition(" ")
            verb, rest = verb.lower(), rest.strip()
            try:
                if verb == "line" and rest:
                    data = _result(await client.evolution_lines())
                    if data: print_line(rest, data["lines"])
                elif verb == "traits" and rest:
                    data = _result(await client.resolve_coromon(rest))
                    if data:
                        print(f"{data['name']} (plus {data['plus']}, stage {data['chain_position']}/{data['chain_length']})")
                        print(f"  Traits: {data['display']}")
                elif verb == "matchup" and " vs " in rest:
                    attacking, defending = rest.split(" vs ", 1)
                    data = _result(await client.type_matchup(attacking.strip(), [d.strip() for d in defending.split(",")]))
                    if data:
                        print(f"{data['attacking']} vs {'/'.join(data['defending'])}: x{data['multiplier']}")
                else:
                    print("Invalid command. Use 'line <coromon>', 'traits <coromon>' or 'matchup <type> vs <type>'")
            except Exception as e:
                print(f"An error occurred in the client: {e}")

    finally:
        print("Shutting down server...")
        process.terminate()
        await process.wait()

if __name__ == "__main__":
    asyncio.run(main())
