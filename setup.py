from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="how-cli",
    version="0.3.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Turn plain-language requests into shell commands using the Gemini API, and fix them when they fail",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/how-cli",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Environment :: Console",
        "Topic :: Utilities",
    ],
    python_requires=">=3.9",
    install_requires=[
        "google-generativeai>=0.7.0",
        "google-api-core>=2.11.0",
        "rich>=13.8.0",
        "toml>=0.10.2",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "how=how.main:main",
        ],
    },
)
