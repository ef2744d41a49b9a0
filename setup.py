from setuptools import setup, find_packages

setup(
    name='spvforge',
    version='0.1.0',
    author='nassimberrada',
    author_email='your.email@example.com',
    description='Compile GLSL/HLSL shaders to SPIR-V with include resolution and an mtime-validated artifact cache.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    url='https://github.com/yourusername/spvforge',
    packages=find_packages(exclude=['tests', 'tests.*']),
    include_package_data=True,
    install_requires=[
        'numpy',
        'watchdog',
    ],
    extras_require={
        'test': [
            'pytest',
        ]
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: Multimedia :: Graphics :: 3D Rendering',
        'Topic :: Software Development :: Compilers',
    ],
    python_requires='>=3.8',
)
