from setuptools import find_packages, setup

package_list = find_packages(
  include=[
    "gitlog",
    "gitlog.*",
  ]
)

setup(
  name="gitlog-extract",
  version="0.1.0",
  description="Extract per-file change history of a git repository as JSON lines",
  python_requires=">=3.11",
  packages=package_list,
  include_package_data=True,
  install_requires=[
    "GitPython",
    "unidiff",
    "pydantic",
    "python-dotenv",
    "platformdirs",
    "keyring",
  ],
  extras_require={
    "dev": ["pytest", "pytest-cov"],
  },
  entry_points={
    "console_scripts": [
      "gitlog-extract=gitlog.main:main",
    ],
  },
)
