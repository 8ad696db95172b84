from setuptools import setup, find_packages

with open('README.md', 'r', encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='colmap-reader',
    version='0.1.0',
    author='SperidLabs',
    author_email='contact@speridlabs.com',
    description='Text and binary readers for COLMAP sparse reconstructions',
    long_description=long_description,
    long_description_content_type='text/markdown',
    url='https://github.com/speridlabs/colmap-reader',
    packages=find_packages(exclude=['tests', 'tests.*']),
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    install_requires=[
        'numpy>=1.20.0',
    ],
    extras_require={
        'dev': [
            'pytest>=6.0',
        ]
    },
)
