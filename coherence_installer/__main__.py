from coherence_installer.cli import main

main()
