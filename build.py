import platform
import subprocess

target = "src/melbank/cli.py"
cmd = ["uv", "run", "pyinstaller", "--onefile", "--name", "melbank", "--paths", "src", target]

print(f"Building for {platform.system()}...")
subprocess.run(cmd, check=True)
