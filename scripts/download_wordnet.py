import nltk

# WordNet data used by the lemmatizer and the synonym precomputation
CORPORA = ["wordnet", "omw-1.4"]


def download_corpora(corpora, download_dir=None):
    for name in corpora:
        print(f"Downloading NLTK corpus {name} ...")
        nltk.download(name, download_dir=download_dir, quiet=True)
    print("Done")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Download the WordNet data needed for synonym precomputation.")
    parser.add_argument("--dir", default=None, help="NLTK data directory (default: NLTK's own lookup path)")
    args = parser.parse_args()
    download_corpora(CORPORA, args.dir)
