from setuptools import setup, find_packages

def parse_requirements(requirements):
    with open(requirements) as f:
        return [l.strip('\n') for l in f if l.strip('\n') and not l.startswith('#')]

requirements = parse_requirements("requirements.txt")

setup(
    name='canvas_client',
    version='0.1.0',
    description='Typed async client for the Canvas LMS REST API',
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "respx>=0.20",
        ],
    },
    python_requires='>=3.11',
    package_dir={"": "src"},
    packages=find_packages("src", include=["canvas_client", "canvas_client.*"]),
)
