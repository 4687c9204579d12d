from setuptools import setup, find_packages

setup(
    name="devassist",
    version="0.1.0",
    description="Project-based code assistant with persistent, mergeable Gemini conversations",
    packages=find_packages(include=["devassist", "devassist.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.6",
        "google-genai>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "devassist=devassist.main:main",
        ],
    },
)
