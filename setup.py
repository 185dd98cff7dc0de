from setuptools import setup, find_packages

setup(
    name="ai-sidecar",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "transformers",
        "torch",
        "bitsandbytes",
        "accelerate",
        "pyyaml",
        "requests",
        "pydantic>=2",
    ],
    extras_require={
        "test": ["pytest", "httpx"],
    },
    entry_points={
        "console_scripts": ["ai-sidecar=ai_sidecar.app:main"],
    },
    python_requires=">=3.10",
)
